"""
CLI helper tests: level detection, Markdown extraction, input reading,
output paths and structured logging.
"""

import json
import logging

import pytest

from merise.cli.commands import resolve_output_path
from merise.cli.helpers import JSONFormatter, detect_level, extract_code_block, read_input
from merise.constants import ModelLevel
from merise.core.pipeline import OutputTarget

from fixtures import CLIENT_COMMANDE_MCD, SIMPLE_MLD, SIMPLE_MPD

MARKDOWN = """# Shop model

```merise-mcd
ENTITY A { id_a [PK] }
```

```merise-mld
TABLE A { id_a [PK] }
```
"""


@pytest.mark.unit
class TestDetectLevel:

    @pytest.mark.parametrize("text,expected", [
        (CLIENT_COMMANDE_MCD, ModelLevel.MCD),
        (SIMPLE_MLD, ModelLevel.MLD),
        (SIMPLE_MPD, ModelLevel.MPD),
        ("TABLE EMPTY { }", ModelLevel.MLD),
    ])
    def test_levels(self, text, expected):
        assert detect_level(text) is expected

    def test_no_blocks(self):
        assert detect_level("just prose") is None


@pytest.mark.unit
class TestExtractCodeBlock:

    def test_first_block(self):
        text, level = extract_code_block(MARKDOWN)
        assert level is ModelLevel.MCD
        assert text.strip() == "ENTITY A { id_a [PK] }"

    def test_block_of_requested_level(self):
        text, level = extract_code_block(MARKDOWN, ModelLevel.MLD)
        assert level is ModelLevel.MLD
        assert text.strip() == "TABLE A { id_a [PK] }"

    def test_no_matching_block(self):
        assert extract_code_block(MARKDOWN, ModelLevel.MPD) is None
        assert extract_code_block("```python\nprint(1)\n```\n") is None


@pytest.mark.unit
class TestReadInput:

    def test_plain_file_with_detection(self, temp_model_file):
        text, level = read_input(temp_model_file)
        assert level is ModelLevel.MCD
        assert text == CLIENT_COMMANDE_MCD

    def test_forced_level(self, tmp_path):
        path = tmp_path / "model.txt"
        path.write_text(SIMPLE_MLD, encoding="utf-8")
        assert read_input(path, "mpd")[1] is ModelLevel.MPD

    def test_markdown_file(self, tmp_path):
        path = tmp_path / "notes.md"
        path.write_text(MARKDOWN, encoding="utf-8")
        text, level = read_input(path, "mld")
        assert level is ModelLevel.MLD
        assert "TABLE A" in text

    def test_fence_in_plain_file(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text(MARKDOWN, encoding="utf-8")
        assert read_input(path)[1] is ModelLevel.MCD

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_input(tmp_path / "absent.mcd")

    def test_undetectable_level(self, tmp_path):
        path = tmp_path / "prose.txt"
        path.write_text("nothing to see\n", encoding="utf-8")
        with pytest.raises(ValueError):
            read_input(path)


@pytest.mark.unit
class TestResolveOutputPath:

    def test_no_output(self):
        assert resolve_output_path(None, "shop.mcd", OutputTarget.SQL, multiple=False) is None

    def test_single_file(self):
        assert resolve_output_path("out.sql", "shop.mcd", OutputTarget.SQL, multiple=False) == "out.sql"

    def test_directory_for_several_files(self, tmp_path):
        resolved = resolve_output_path(str(tmp_path), "models/shop.mcd", OutputTarget.MPD, multiple=True)
        assert resolved == str(tmp_path / "shop.mpd")


@pytest.mark.unit
class TestJSONFormatter:

    def test_payload(self):
        record = logging.LogRecord(
            name="merise.test",
            level=logging.WARNING,
            pathname=__file__,
            lineno=10,
            msg="Converted %s tables",
            args=(3,),
            exc_info=None,
        )
        record.table = "CLIENT"
        payload = json.loads(JSONFormatter().format(record))
        assert payload["level"] == "WARNING"
        assert payload["logger"] == "merise.test"
        assert payload["message"] == "Converted 3 tables"
        assert payload["table"] == "CLIENT"
        assert payload["timestamp"].endswith("Z")
