import tempfile
import unittest
from pathlib import Path

from coursesync.config import Settings, load_config, save_config


class TestConfig(unittest.TestCase):
    def test_missing_file_gives_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            self.assertEqual(load_config(Path(d) / "config.yaml"), Settings())

    def test_save_and_load_roundtrip(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "sub" / "config.yaml"
            settings = Settings(use_live_api=False, timeout=3.5, storage_path=str(Path(d) / "s.json"))
            save_config(settings, p)
            self.assertEqual(load_config(p), settings)

    def test_unknown_keys_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "config.yaml"
            p.write_text("use_live_api: false\ncolour: blue\n", encoding="utf-8")
            settings = load_config(p)
            self.assertFalse(settings.use_live_api)

    def test_broken_file_gives_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "config.yaml"
            for text in ("use_live_api: [unclosed", "- just\n- a list\n", "timeout: fast\n"):
                with self.subTest(text=text):
                    p.write_text(text, encoding="utf-8")
                    self.assertEqual(load_config(p), Settings())


if __name__ == "__main__":
    unittest.main()
