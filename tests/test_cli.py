"""Tests for the command line interface."""

import logging

import pytest
from ghost2zola.cli import build_parser, main


@pytest.fixture(autouse=True)
def restore_logging():
    """main() reconfigures the root logger; put the test harness handlers back."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "defaults.toml"
    path.write_text('[logging]\nlevel = "WARNING"\n\n[conversion]\npath_layout = "dated"\n')
    return path


class TestParser:
    """Test argument parsing."""

    def test_convert_arguments(self):
        args = build_parser().parse_args(
            ["convert", "export.tar", "content/blog", "--prefix", "blog", "--layout", "flat", "--workers", "2"]
        )
        assert args.command == "convert"
        assert str(args.archive_path) == "export.tar"
        assert args.prefix == "blog"
        assert args.layout == "flat"
        assert args.workers == 2

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:
    """Test commands end to end."""

    def test_convert(self, hello_world_archive, extract_path, config_file, capsys):
        code = main(["--config", str(config_file), "convert", str(hello_world_archive), str(extract_path)])
        assert code == 0
        assert (extract_path / "2020/01/01/hello-world.md").exists()
        assert "converted 1 posts" in capsys.readouterr().out

    def test_convert_overrides(self, hello_world_archive, extract_path, config_file):
        code = main([
            "--config", str(config_file), "convert", str(hello_world_archive), str(extract_path),
            "--layout", "flat", "--media-dir", "images",
        ])
        assert code == 0
        assert (extract_path / "hello-world.md").exists()

    def test_convert_failure_exit_code(self, tmp_path, extract_path, config_file):
        bogus = tmp_path / "bogus.tar"
        bogus.write_text("not an archive\n" * 100)
        assert main(["--config", str(config_file), "convert", str(bogus), str(extract_path)]) == 1

    def test_missing_config_file(self, hello_world_archive, extract_path, tmp_path, capsys):
        code = main(["--config", str(tmp_path / "absent.toml"), "convert", str(hello_world_archive), str(extract_path)])
        assert code == 2
        assert "Config file not found" in capsys.readouterr().err

    def test_list_prefixes(self, hello_world_archive, config_file, capsys):
        assert main(["--config", str(config_file), "list-prefixes", str(hello_world_archive)]) == 0
        assert capsys.readouterr().out.splitlines() == ["blog/content"]

    def test_find_db(self, hello_world_archive, config_file, capsys):
        assert main(["--config", str(config_file), "find-db", str(hello_world_archive)]) == 0
        assert capsys.readouterr().out.strip() == "found db path: blog/content/data/ghost.db"

    def test_find_db_all(self, ghost_db, make_archive, config_file, capsys):
        archive = make_archive({
            "a/content/data/ghost.db": ghost_db(),
            "b/content/data/ghost.db": ghost_db(),
        })
        assert main(["--config", str(config_file), "find-db", "--all", str(archive)]) == 0
        assert capsys.readouterr().out.splitlines() == ["a/content/data/ghost.db", "b/content/data/ghost.db"]

    def test_ambiguous_lists_candidates(self, ghost_db, make_archive, extract_path, config_file, capsys):
        archive = make_archive({
            "a/content/data/ghost.db": ghost_db(),
            "b/content/data/ghost.db": ghost_db(),
        })
        assert main(["--config", str(config_file), "convert", str(archive), str(extract_path)]) == 1
        err = capsys.readouterr().err
        assert "a/content" in err and "b/content" in err

    def test_check_file_type(self, make_archive, tmp_path, config_file, capsys):
        archive = make_archive({"x.txt": b"x"}, name="backup.bin", compression="gz")
        text = tmp_path / "notes.txt"
        text.write_text("plain text\n" * 100)

        code = main(["--config", str(config_file), "check-file-type", str(archive), str(text)])

        assert code == 1
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].endswith(": tar.gz")
        assert "unsupported" in lines[1]
