"""
Tests for block extraction and item splitting.
"""

import pytest

from merise.shared.blocks import extract_blocks, split_items, split_outside_brackets


@pytest.mark.unit
class TestExtractBlocks:

    def test_multiline_block(self):
        scan = extract_blocks("ENTITY CLIENT {\n    id_client [PK]\n    nom\n}\n")
        assert len(scan.blocks) == 1
        block = scan.blocks[0]
        assert (block.keyword, block.name, block.line, block.closed) == ("ENTITY", "CLIENT", 1, True)
        assert split_items(block.body) == ["id_client [PK]", "nom"]

    def test_brace_on_next_line(self):
        scan = extract_blocks("\nTABLE T\n\n{\n  id_t [PK]\n}")
        assert scan.blocks[0].name == "T"
        assert scan.blocks[0].body == "id_t [PK]"
        assert scan.stray_lines == []

    def test_comment_between_header_and_brace(self):
        scan = extract_blocks("ENTITY CLIENT\n// identifier first\n{\n  id_client [PK]\n}\n")
        assert scan.stray_lines == []
        assert scan.blocks[0].name == "CLIENT"
        assert scan.blocks[0].body == "id_client [PK]"

    def test_header_extra_text(self):
        block = extract_blocks("ASSOCIATIVE ligne ON contient { remise }").blocks[0]
        assert block.extra == "ON contient"
        assert block.body == "remise"

    def test_several_blocks_on_one_line(self):
        scan = extract_blocks("TABLE A { id_a [PK] } TABLE B { id_b [PK] }")
        assert [b.name for b in scan.blocks] == ["A", "B"]

    def test_unterminated_block(self):
        scan = extract_blocks("TABLE A {\n  id_a [PK]\n")
        assert not scan.blocks[0].closed

    def test_stray_lines_are_reported(self):
        scan = extract_blocks("// comment\nhello\nTABLE A { id_a [PK] }")
        assert scan.stray_lines == [(2, "hello")]
        assert [b.name for b in scan.blocks] == ["A"]

    def test_header_without_body(self):
        scan = extract_blocks("TABLE A\n")
        assert scan.blocks == []
        assert scan.stray_lines == [(1, "TABLE A")]

    def test_label(self):
        assert extract_blocks("entity A { x }").blocks[0].label == "ENTITY A"


@pytest.mark.unit
class TestSplitItems:

    def test_commas_inside_parentheses_are_kept(self):
        assert split_outside_brackets("COMMANDE (1,1), ADRESSE (0,n)") == ["COMMANDE (1,1)", "ADRESSE (0,n)"]

    def test_commas_inside_brackets_are_kept(self):
        assert split_outside_brackets("total DECIMAL(10,2) [CHECK(total IN (1, 2))]") == [
            "total DECIMAL(10,2) [CHECK(total IN (1, 2))]",
        ]

    def test_newlines_and_commas_normalize_alike(self):
        assert split_items("A (0,n)\nB (1,1)") == split_items("A (0,n), B (1,1)")

    def test_comments_and_blank_lines_are_skipped(self):
        assert split_items("\n# note\n  id [PK]  \n// other\n,\n") == ["id [PK]"]
