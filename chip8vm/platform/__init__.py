"""pygame window, input and audio for the CHIP-8 VM."""
