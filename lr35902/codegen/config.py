from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Optional

DEFAULT_OPCODES_URL = "https://gbdev.io/gb-opcodes/Opcodes.json"
DEFAULT_OPCODES_CACHE = Path.home() / ".cache" / "lr35902-codegen" / "Opcodes.json"
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().casefold()
    return normalized not in {"0", "false", "off", ""}


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return Path(raw.strip()).expanduser()


def _env_log_level(name: str, default: str = "WARNING") -> str:
    raw = (os.getenv(name) or "").strip().upper()
    return raw if raw in _LOG_LEVELS else default


@dataclass(frozen=True)
class CodegenConfig:
    opcodes_url: str
    opcodes_cache: Path
    strict: bool
    log_level: str


def load_codegen_config(strict: Optional[bool] = None) -> CodegenConfig:
    return CodegenConfig(
        opcodes_url=os.getenv("LR35902_OPCODES_URL") or DEFAULT_OPCODES_URL,
        opcodes_cache=_env_path("LR35902_OPCODES_CACHE", DEFAULT_OPCODES_CACHE),
        strict=_env_flag("LR35902_CODEGEN_STRICT", default=False) if strict is None else strict,
        log_level=_env_log_level("LR35902_CODEGEN_LOG_LEVEL"),
    )


__all__ = ["CodegenConfig", "DEFAULT_OPCODES_URL", "load_codegen_config"]
