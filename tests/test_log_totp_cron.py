import importlib.util
import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path


SCRIPT_PATH = Path(__file__).resolve().parent.parent / "scripts" / "log_totp_cron.py"


def load_script():
    spec = importlib.util.spec_from_file_location("log_totp_cron", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def run_main(config_path):
    out = io.StringIO()
    with redirect_stdout(out):
        load_script().main(config_path)
    return out.getvalue().strip()


class LogTotpCronTests(unittest.TestCase):
    def test_logs_timestamped_code(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "totp.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump({"digits": 8, "secret": "PRUSAROPUWS2LJI="}, f)
            line = run_main(path)
        self.assertRegex(line, r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} - TOTP Code: \d{8}$")

    def test_missing_config(self):
        with tempfile.TemporaryDirectory() as tmp:
            line = run_main(os.path.join(tmp, "missing.json"))
        self.assertEqual(line, "Config file not found. Cannot generate TOTP code.")

    def test_bad_config(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "totp.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump({"digits": 9, "secret": "PRUSAROP"}, f)
            line = run_main(path)
        self.assertTrue(line.startswith("Error reading config:"))


if __name__ == "__main__":
    unittest.main()
