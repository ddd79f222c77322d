"""ripen User Configuration.

This is the user-facing configuration file. Modify settings here to customize
the bake. Advanced settings are the defaults in ripen.schemas.param.

Usage:
    python scripts/run_bake.py scripts/user_config.py
    python scripts/run_bake.py scripts/user_config.py --image dawn.png
"""

CONFIG = {
    # ========================================================================
    # IMAGE & OUTPUT
    # ========================================================================
    "IMAGE_PATH": "images/sunset.png",  # Any format Pillow reads; baked as grayscale
    "BASE_DIR": "./ripen_output",       # Store and logs go here
    "SCHEMA_NAME": "ripen",             # One schema per bake

    # ========================================================================
    # BAKE SETTINGS
    # ========================================================================
    "RIPENESS": 256,          # Tokens per row bucket
    "INTERVAL_SEC": 60,       # Seconds between columns
    "WAIT_FOR_PREVIOUS": False,  # True: never bake two columns at once
    "ALIGN_SECOND": None,     # 0-59 to start on that wall-clock second

    # ========================================================================
    # LOGGING
    # ========================================================================
    "LOG_LEVEL": "INFO",
}
