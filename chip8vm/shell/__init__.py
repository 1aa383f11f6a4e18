# CHIP-8 host shell
"""Services and rendering glue between the core and the pygame platform."""
