"""
MLD to MPD Converter Unit Tests.

Tests for type inference, foreign-key type propagation and constraint
assignment.
"""

import pytest

from merise.config import ConversionConfig
from merise.constants import ConstraintKind, ReferentialAction, SqlDialect
from merise.formats.mcd.mcd_converter import convert_mcd_to_mld
from merise.formats.mcd.mcd_parser import parse_mcd
from merise.formats.mld.mld_converter import MldToMpdConverter, convert_mld_to_mpd
from merise.formats.mld.mld_parser import parse_mld
from merise.shared.validation import IssueCategory

from fixtures import SIMPLE_MLD, ACTIONS_MLD, MANY_TO_MANY_MCD, TWO_RELATIONS_SAME_PAIR_MCD


def to_mpd(mld_text, config=None):
    return MldToMpdConverter(config).convert(parse_mld(mld_text).model)


def mcd_to_mpd(mcd_text, config=None):
    mld = convert_mcd_to_mld(parse_mcd(mcd_text).model, config).model
    return convert_mld_to_mpd(mld, config)


@pytest.mark.unit
class TestTypeResolution:
    """Column types."""

    def test_simple_model_types(self):
        mpd = to_mpd(SIMPLE_MLD).model

        client = mpd.get_table("CLIENT")
        assert [(c.name, c.sql_type) for c in client.columns] == [
            ("id_client", "INT"),
            ("nom", "VARCHAR(255)"),
            ("email", "VARCHAR(255)"),
        ]
        commande = mpd.get_table("COMMANDE")
        assert commande.get_column("date_commande").sql_type == "DATE"
        assert commande.get_column("id_client").sql_type == "INT"

    def test_postgres_primary_key_is_serial_and_foreign_key_is_int(self, postgres_config):
        mpd = to_mpd(SIMPLE_MLD, postgres_config).model
        assert mpd.get_table("CLIENT").get_column("id_client").sql_type == "SERIAL"
        assert mpd.get_table("COMMANDE").get_column("id_client").sql_type == "INT"

    def test_foreign_key_takes_referenced_type(self):
        mpd = mcd_to_mpd(MANY_TO_MANY_MCD).model
        contient = mpd.get_table("contient")
        assert contient.get_column("ref_article").sql_type == "VARCHAR(20)"
        assert contient.get_column("id_commande").sql_type == "INT"
        assert contient.get_column("quantite").sql_type == "INT"

    def test_role_suffixed_foreign_keys_take_referenced_type(self, postgres_config):
        commande = mcd_to_mpd(TWO_RELATIONS_SAME_PAIR_MCD, postgres_config).model.get_table("COMMANDE")
        assert commande.get_column("id_adresse_livraison").sql_type == "INT"
        assert commande.get_column("id_adresse_facturation").sql_type == "INT"

    def test_foreign_key_chain_independent_of_declaration_order(self):
        mpd = to_mpd("""
            TABLE C { id_c [PK], b_code [FK -> B.code_a] }
            TABLE B { code_a [PK] [FK -> A.code_a] }
            TABLE A { code_a [PK] }
        """, ConversionConfig(default_varchar_length=40)).model
        assert mpd.get_table("A").get_column("code_a").sql_type == "VARCHAR(40)"
        assert mpd.get_table("B").get_column("code_a").sql_type == "VARCHAR(40)"
        assert mpd.get_table("C").get_column("b_code").sql_type == "VARCHAR(40)"

    def test_unknown_reference_infers_from_own_name(self):
        result = to_mpd("TABLE X { id_x [PK], id_ghost [FK -> GHOST.id_ghost] }", ConversionConfig(
            sql_dialect=SqlDialect.POSTGRESQL,
        ))
        assert result.model.get_table("X").get_column("id_ghost").sql_type == "INT"
        assert result.validation.by_category(IssueCategory.TYPE_MISMATCH)

    def test_foreign_key_column_cycle_terminates(self):
        result = to_mpd("""
            TABLE A { id_a [PK], x [FK -> B.y] }
            TABLE B { id_b [PK], y [FK -> A.x] }
        """)
        assert result.model.get_table("A").get_column("x").sql_type == "VARCHAR(255)"
        assert result.model.get_table("B").get_column("y").sql_type == "VARCHAR(255)"
        assert result.validation.by_category(IssueCategory.TYPE_MISMATCH)


@pytest.mark.unit
class TestConstraints:
    """NOT NULL, UNIQUE and referential actions."""

    def test_keys_are_not_null(self):
        mpd = to_mpd(SIMPLE_MLD).model
        assert mpd.get_table("CLIENT").get_column("id_client").has_constraint(ConstraintKind.NOT_NULL)
        assert mpd.get_table("COMMANDE").get_column("id_client").has_constraint(ConstraintKind.NOT_NULL)
        assert not mpd.get_table("CLIENT").get_column("nom").has_constraint(ConstraintKind.NOT_NULL)

    def test_email_columns_are_unique(self):
        mpd = to_mpd("TABLE U { id_u [PK], email_pro, nom }").model
        table = mpd.get_table("U")
        assert table.get_column("email_pro").has_constraint(ConstraintKind.UNIQUE)
        assert not table.get_column("nom").has_constraint(ConstraintKind.UNIQUE)

    def test_referential_actions_default_to_cascade(self):
        fk = to_mpd(SIMPLE_MLD).model.get_table("COMMANDE").get_column("id_client").foreign_key
        assert fk.on_delete is ReferentialAction.CASCADE
        assert fk.on_update is ReferentialAction.CASCADE

    def test_explicit_referential_actions_are_kept(self):
        fk = to_mpd(ACTIONS_MLD).model.get_table("COMMANDE").get_column("id_client").foreign_key
        assert fk.on_delete is ReferentialAction.SET_NULL
        assert fk.on_update is ReferentialAction.RESTRICT

    def test_primary_key_flags_are_kept(self):
        contient = mcd_to_mpd(MANY_TO_MANY_MCD).model.get_table("contient")
        assert [c.name for c in contient.primary_key_columns] == ["id_commande", "ref_article"]


@pytest.mark.unit
class TestConversionContract:

    def test_input_model_is_not_mutated(self):
        mld = parse_mld(SIMPLE_MLD).model
        before = mld.to_dict()
        convert_mld_to_mpd(mld, ConversionConfig(sql_dialect=SqlDialect.POSTGRESQL))
        assert mld.to_dict() == before

    def test_converter_is_reusable(self, postgres_config):
        converter = MldToMpdConverter(postgres_config)
        converter.convert(parse_mld(SIMPLE_MLD).model)
        second = converter.convert(parse_mld("TABLE CLIENT { id_client [PK], nom }").model)
        assert second.model.get_table_names() == ["CLIENT"]
        assert second.model.get_table("CLIENT").get_column("id_client").sql_type == "SERIAL"
