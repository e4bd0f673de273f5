"""Sharp LR35902 emulator core and the generator that produces its instruction code."""
