import json
from pathlib import Path

import yaml
from click.testing import CliRunner

from express_openapi.cli import main

FIXTURES = Path(__file__).parent / "fixtures"


class TestCliInputErrors:
    def test_missing_input_path(self):
        result = CliRunner().invoke(main, [])
        assert result.exit_code == 1
        assert "Please provide a path" in result.output

    def test_invalid_format(self):
        result = CliRunner().invoke(main, [str(FIXTURES / "users_app.js"), "xml"])
        assert result.exit_code == 1
        assert "must be 'json' or 'yaml'" in result.output

    def test_missing_file(self, tmp_path):
        result = CliRunner().invoke(main, [str(tmp_path / "nope.js")])
        assert result.exit_code == 1
        assert "File not found" in result.output


class TestCliGenerate:
    def test_json_written_to_cwd_by_default(self, tmp_path):
        runner = CliRunner()
        with runner.isolated_filesystem(temp_dir=tmp_path) as cwd:
            result = runner.invoke(main, [str(FIXTURES / "users_app.js")])
            spec_path = Path(cwd) / "openapi.json"
            assert result.exit_code == 0, result.output
            assert spec_path.exists()
            doc = json.loads(spec_path.read_text(encoding="utf-8"))
        assert doc["openapi"] == "3.0.0"
        assert "/api/users/{id}" in doc["paths"]

    def test_yaml_with_output_dir(self, tmp_path):
        result = CliRunner().invoke(main, [str(FIXTURES / "todos_router.js"), "yaml", "-o", str(tmp_path)])
        assert result.exit_code == 0, result.output
        doc = yaml.safe_load((tmp_path / "openapi.yaml").read_text(encoding="utf-8"))
        assert list(doc["paths"]) == ["/", "/{id}"]

    def test_route_summary_lines(self, tmp_path):
        result = CliRunner().invoke(main, [str(FIXTURES / "users_app.js"), "-o", str(tmp_path)])
        assert "Found 7 route(s)" in result.output
        assert "  GET /api/users\n" in result.output
        assert "  GET /api/users/{id} (1 params)\n" in result.output
        assert "  GET /api/users/search (1 params) + query\n" in result.output

    def test_info_options(self, tmp_path):
        result = CliRunner().invoke(main, [
            str(FIXTURES / "todos_router.js"),
            "-o", str(tmp_path),
            "--title", "Todo API",
            "--api-version", "2.0.0",
        ])
        assert result.exit_code == 0
        doc = json.loads((tmp_path / "openapi.json").read_text(encoding="utf-8"))
        assert doc["info"]["title"] == "Todo API"
        assert doc["info"]["version"] == "2.0.0"

    def test_parse_error_degrades_to_empty_spec(self, tmp_path):
        result = CliRunner().invoke(main, [str(FIXTURES / "broken.js"), "-o", str(tmp_path)])
        assert result.exit_code == 0
        assert "Error parsing file" in result.output
        assert "Found 0 route(s)" in result.output
        doc = json.loads((tmp_path / "openapi.json").read_text(encoding="utf-8"))
        assert doc["paths"] == {}

    def test_non_utf8_input_is_read_with_replacement(self, tmp_path):
        app = tmp_path / "latin1_app.js"
        app.write_bytes(
            "// caf\u00e9\nconst app = express();\napp.get('/menu', (req, res) => res.json(items));\n".encode("latin-1")
        )
        result = CliRunner().invoke(main, [str(app), "-o", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert "Found 1 route(s)" in result.output
        doc = json.loads((tmp_path / "openapi.json").read_text(encoding="utf-8"))
        assert list(doc["paths"]) == ["/menu"]

    def test_write_error_is_fatal(self, tmp_path):
        blocker = tmp_path / "taken"
        blocker.write_text("not a directory", encoding="utf-8")
        result = CliRunner().invoke(main, [str(FIXTURES / "todos_router.js"), "-o", str(blocker / "sub")])
        assert result.exit_code == 1
        assert "Failed to write OpenAPI spec" in result.output

    def test_idempotent_output(self, tmp_path):
        runner = CliRunner()
        runner.invoke(main, [str(FIXTURES / "users_app.js"), "-o", str(tmp_path)])
        first = (tmp_path / "openapi.json").read_bytes()
        runner.invoke(main, [str(FIXTURES / "users_app.js"), "-o", str(tmp_path)])
        assert (tmp_path / "openapi.json").read_bytes() == first
