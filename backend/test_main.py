"""Tests for the dry-run command line."""
import json

from main import main


def _write_directive(root, actor, name, text):
    actor_dir = root / actor
    actor_dir.mkdir(exist_ok=True)
    (actor_dir / f"directive_{name}.txt").write_text(text, encoding="utf-8")


class TestMain:
    """Tests for main()."""

    def test_prints_selections_and_cooldowns(self, tmp_path, capsys):
        _write_directive(tmp_path, "Bennett", "heal", "2 e:10\n5\ne\n")
        _write_directive(tmp_path, "Xiangling", "burst", "3 q:20\n5\nq\n")

        code = main([
            "Bennett", "Xiangling",
            "--cycles", "2",
            "--directive-dir", str(tmp_path),
            "--role-file", str(tmp_path / "roles.json"),
        ])

        out = capsys.readouterr().out
        assert code == 0
        assert "Bennett/heal" in out
        assert "Xiangling/burst" in out
        cooldowns = json.loads(out[out.index("{"):])
        assert cooldowns == {"Bennett": {"e": 5.0}, "Xiangling": {"q": 17.0}}

    def test_no_directives(self, tmp_path, capsys):
        code = main(["Bennett", "--cycles", "1", "--directive-dir", str(tmp_path)])

        out = capsys.readouterr().out
        assert code == 0
        assert "(no directive)" in out

    def test_role_file_follows_directive_dir(self, tmp_path, capsys):
        _write_directive(tmp_path, "Bennett", "e", "2\n5\ne\n")
        _write_directive(tmp_path, "Xiangling", "q", "2\n5\nq\n")
        (tmp_path / "role_priority.json").write_text(json.dumps({"shield": ["Xiangling"]}), encoding="utf-8")

        main(["Bennett", "Xiangling", "--cycles", "1", "--directive-dir", str(tmp_path)])

        out = capsys.readouterr().out
        assert "Xiangling/q  priority=4" in out

    def test_role_file_option_wins(self, tmp_path, capsys):
        _write_directive(tmp_path, "Bennett", "e", "2\n5\ne\n")
        _write_directive(tmp_path, "Xiangling", "q", "2\n5\nq\n")
        (tmp_path / "role_priority.json").write_text(json.dumps({"shield": ["Xiangling"]}), encoding="utf-8")

        main([
            "Bennett", "Xiangling", "--cycles", "1",
            "--directive-dir", str(tmp_path),
            "--role-file", str(tmp_path / "missing.json"),
        ])

        out = capsys.readouterr().out
        assert "Bennett/e  priority=4" in out
