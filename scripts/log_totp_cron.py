#!/usr/bin/env python3

import os
import datetime
import pytz
from totp_config import ConfigError, load_config
from totp_utils import generate_code

CONFIG_PATH = os.getenv("TOTP_CONFIG_PATH", "/data/totp.json")


def main(config_path=CONFIG_PATH):
    # 1. Read config
    if not os.path.exists(config_path):
        print("Config file not found. Cannot generate TOTP code.")
        return

    try:
        config = load_config("@" + config_path)
    except ConfigError as e:
        print("Error reading config:", e)
        return

    # 2. Generate TOTP
    try:
        code = generate_code(config)
    except (ValueError, OverflowError) as e:
        print("TOTP generation error:", e)
        return

    # 3. UTC timestamp
    timestamp = datetime.datetime.now(pytz.utc).strftime("%Y-%m-%d %H:%M:%S")

    # 4. Output
    print(f"{timestamp} - TOTP Code: {code}")


if __name__ == "__main__":
    main()
