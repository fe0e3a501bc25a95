import tempfile
import unittest
from pathlib import Path

from init_errors import FilesystemError, UsageConflictError
from option_config import Config
from option_file import OptionFile
from schema_dir import Dir, SQLFile


def schema_option_file(name: str) -> OptionFile:
    f = OptionFile()
    f.set_option_value("", "schema", name)
    return f


class TestDir(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name)

    def tearDown(self) -> None:
        self._td.cleanup()

    def test_create_if_missing(self) -> None:
        d = Dir.open(self.root / "db1", Config())
        self.assertTrue(d.create_if_missing())
        self.assertTrue(d.path.is_dir())
        self.assertFalse(d.create_if_missing())

    def test_create_if_missing_on_file(self) -> None:
        (self.root / "db1").write_text("x", encoding="utf-8")
        d = Dir.open(self.root / "db1", Config())
        with self.assertRaises(FilesystemError):
            d.create_if_missing()

    def test_create_option_file_refuses_to_overwrite(self) -> None:
        d = Dir.open(self.root, Config())
        self.assertFalse(d.has_option_file())
        d.create_option_file(schema_option_file("app"))
        self.assertTrue(d.has_option_file())
        self.assertEqual(d.config.get("schema"), "app")
        with self.assertRaises(UsageConflictError):
            d.create_option_file(schema_option_file("other"))
        self.assertEqual((self.root / ".skeema").read_text(encoding="utf-8"), "schema=app\n")

    def test_open_merges_ancestor_option_files(self) -> None:
        (self.root / ".skeema").write_text("temp-schema=_outer\n[production]\nuser=outer\n", encoding="utf-8")
        inner = self.root / "a" / "b"
        inner.mkdir(parents=True)
        (self.root / "a" / ".skeema").write_text("temp-schema=_inner\n", encoding="utf-8")
        d = Dir.open(inner, Config())
        self.assertEqual(d.config.get("temp-schema"), "_inner")
        self.assertEqual(d.config.get("user"), "outer")

    def test_sql_files(self) -> None:
        for name in ("b.sql", "a.sql", "notes.txt"):
            (self.root / name).write_text("x", encoding="utf-8")
        (self.root / "dir.sql").mkdir()
        self.assertEqual(Dir.open(self.root, Config()).sql_files(), ["a.sql", "b.sql"])

    def test_create_subdir(self) -> None:
        parent = Dir.open(self.root, Config({"include-auto-inc": "1"}))
        sub = parent.create_subdir("app", schema_option_file("app"))
        self.assertEqual(sub.path, self.root / "app")
        self.assertEqual((sub.path / ".skeema").read_text(encoding="utf-8"), "schema=app\n")
        self.assertEqual(sub.config.get("schema"), "app")
        self.assertTrue(sub.config.get_bool("include-auto-inc"))

    def test_create_subdir_reuses_empty_dir(self) -> None:
        (self.root / "app").mkdir()
        sub = Dir.open(self.root, Config()).create_subdir("app", schema_option_file("app"))
        self.assertTrue(sub.has_option_file())

    def test_create_subdir_conflicts(self) -> None:
        parent = Dir.open(self.root, Config())
        (self.root / "file_in_way").write_text("x", encoding="utf-8")
        (self.root / "managed").mkdir()
        (self.root / "managed" / ".skeema").write_text("schema=managed\n", encoding="utf-8")
        (self.root / "populated").mkdir()
        (self.root / "populated" / "t.sql").write_text("x", encoding="utf-8")
        for name in ("file_in_way", "managed", "populated"):
            with self.assertRaises(UsageConflictError) as ctx:
                parent.create_subdir(name, schema_option_file(name))
            self.assertEqual(ctx.exception.dir.path, self.root / name)
        self.assertEqual((self.root / "managed" / ".skeema").read_text(encoding="utf-8"), "schema=managed\n")


class TestSQLFile(unittest.TestCase):
    def test_write_terminates_statement(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            d = Dir.open(td, Config())
            sf = SQLFile(d, "t.sql", "CREATE TABLE `t` (\n  `id` int\n) ENGINE=InnoDB")
            length = sf.write()
            data = sf.path.read_bytes()
        self.assertEqual(sf.path.name, "t.sql")
        self.assertEqual(data, b"CREATE TABLE `t` (\n  `id` int\n) ENGINE=InnoDB;\n")
        self.assertEqual(length, len(data))

    def test_write_does_not_double_semicolon(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            sf = SQLFile(Dir.open(td, Config()), "t.sql", "CREATE TABLE `t` (`id` int);\n")
            sf.write()
            self.assertEqual(sf.path.read_text(encoding="utf-8"), "CREATE TABLE `t` (`id` int);\n")


if __name__ == "__main__":
    unittest.main()
