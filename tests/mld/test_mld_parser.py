"""
MLD Parser Unit Tests.
"""

import pytest

from merise.constants import ReferentialAction
from merise.formats.mcd.mcd_converter import convert_mcd_to_mld
from merise.formats.mcd.mcd_parser import parse_mcd
from merise.formats.mld.mld_parser import MldParser, parse_mld, split_flags
from merise.shared.validation import IssueCategory

from fixtures import SIMPLE_MLD, ACTIONS_MLD, TWO_RELATIONS_SAME_PAIR_MCD, MANY_TO_MANY_MCD


@pytest.mark.unit
class TestMldParser:
    """Logical document parsing."""

    def test_parse_tables_and_columns(self):
        result = MldParser().parse(SIMPLE_MLD)

        assert result.is_valid
        assert result.model.get_table_names() == ["CLIENT", "COMMANDE"]

        commande = result.model.get_table("COMMANDE")
        assert [c.name for c in commande.columns] == ["id_commande", "date_commande", "id_client"]
        assert commande.get_column("id_commande").is_primary_key
        fk = commande.get_column("id_client").foreign_key
        assert fk.referenced_table == "CLIENT"
        assert fk.referenced_column == "id_client"
        assert fk.on_delete is None

    def test_primary_and_foreign_key_on_same_column(self):
        result = parse_mld("TABLE contient { id_commande [PK] [FK -> COMMANDE.id_commande], quantite }")
        column = result.model.get_table("contient").get_column("id_commande")
        assert column.is_primary_key
        assert column.is_foreign_key

    def test_referential_actions(self):
        result = MldParser().parse(ACTIONS_MLD)
        fk = result.model.get_table("COMMANDE").get_column("id_client").foreign_key
        assert fk.on_delete is ReferentialAction.SET_NULL
        assert fk.on_update is ReferentialAction.RESTRICT

    def test_referential_actions_in_any_order(self):
        result = parse_mld("TABLE T { id_t [PK], id_u [FK -> U.id_u ON UPDATE CASCADE ON DELETE NO ACTION] }")
        fk = result.model.get_table("T").get_column("id_u").foreign_key
        assert fk.on_delete is ReferentialAction.NO_ACTION
        assert fk.on_update is ReferentialAction.CASCADE

    def test_unknown_referential_action_is_a_warning(self):
        result = parse_mld("TABLE T { id_t [PK], id_u [FK -> U.id_u ON DELETE EXPLODE] }")
        assert result.is_valid
        assert result.validation.by_category(IssueCategory.UNKNOWN_REFERENTIAL_ACTION)
        assert result.model.get_table("T").get_column("id_u").foreign_key.on_delete is None

    def test_unknown_flag_is_ignored(self):
        result = parse_mld("TABLE T { id_t [PK], nom [INDEXED] }")
        assert result.is_valid
        assert [c.name for c in result.model.tables[0].columns] == ["id_t", "nom"]

    def test_non_table_keyword_is_an_error(self):
        result = parse_mld("ENTITY CLIENT { id_client [PK] }\nTABLE T { id_t [PK] }")
        assert not result.is_valid
        assert result.validation.by_category(IssueCategory.UNKNOWN_KEYWORD)
        assert result.model.get_table_names() == ["T"]

    def test_invalid_column_is_an_error(self):
        result = parse_mld("TABLE T { id_t [PK], nom complet }")
        assert not result.is_valid
        assert [c.name for c in result.model.tables[0].columns] == ["id_t"]

    def test_statistics(self):
        assert parse_mld(SIMPLE_MLD).validation.statistics["table_count"] == 2

    def test_split_flags(self):
        flags, remainder = split_flags("[PK] [FK -> A.id_a]")
        assert flags == ["PK", "FK -> A.id_a"]
        assert remainder == ""

    def test_parse_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            MldParser().parse_file(tmp_path / "missing.mld")


@pytest.mark.unit
class TestMldSerialization:
    """``MldModel.to_text`` and re-parsing."""

    def test_to_text_layout(self):
        model = parse_mld(ACTIONS_MLD).model
        assert model.get_table("COMMANDE").to_text() == (
            "TABLE COMMANDE {\n"
            "    id_commande [PK]\n"
            "    id_client [FK -> CLIENT.id_client ON DELETE SET NULL ON UPDATE RESTRICT]\n"
            "}"
        )

    def test_to_text_reparses_to_same_model(self):
        original = parse_mld(ACTIONS_MLD).model
        reparsed = parse_mld(original.to_text())
        assert reparsed.is_valid
        assert reparsed.model.to_dict() == original.to_dict()

    @pytest.mark.parametrize("mcd_text", [TWO_RELATIONS_SAME_PAIR_MCD, MANY_TO_MANY_MCD])
    def test_converted_model_reparses(self, mcd_text):
        mld = convert_mcd_to_mld(parse_mcd(mcd_text).model).model
        reparsed = parse_mld(mld.to_text())
        assert reparsed.is_valid
        assert reparsed.model.to_dict() == mld.to_dict()
