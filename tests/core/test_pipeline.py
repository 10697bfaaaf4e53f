"""
Conversion pipeline tests.
"""

import pytest

from merise.config import ConversionConfig
from merise.constants import ModelLevel, SqlDialect
from merise.core.pipeline import MerisePipeline, OutputTarget, PipelineError, PipelineStage
from merise.core.validator import MeriseValidator
from merise.shared.validation import IssueCategory

from fixtures import (
    CLIENT_COMMANDE_MCD,
    TWO_RELATIONS_SAME_PAIR_MCD,
    MANY_TO_MANY_MCD,
    TERNARY_MCD,
    INHERITANCE_MCD,
    ASSOCIATIVE_MCD,
    INVALID_CARDINALITY_MCD,
    SIMPLE_MLD,
    SIMPLE_MPD,
)

ORPHAN_MCD = """
ENTITY A { id_a [PK] }
ENTITY B { id_b [PK] }
ENTITY LONELY { id_lonely [PK] }
RELATION r { A (0,n), B (1,1) }
"""


@pytest.mark.integration
class TestPipelineStages:
    """Which stages run for each level and target."""

    def test_mcd_to_sql(self):
        result = MerisePipeline().run(CLIENT_COMMANDE_MCD, ModelLevel.MCD, OutputTarget.SQL)

        assert result.succeeded
        assert result.completed_stages == list(PipelineStage)
        assert result.mcd is not None and result.mld is not None and result.mpd is not None
        assert "CREATE TABLE `CLIENT`" in result.sql
        assert result.output_text(OutputTarget.SQL) == result.sql

    def test_mcd_to_mld_stops_after_conversion(self):
        result = MerisePipeline().run(CLIENT_COMMANDE_MCD, "mcd", "mld")

        assert result.completed_stages == [PipelineStage.PARSE, PipelineStage.VALIDATE, PipelineStage.MCD_TO_MLD]
        assert result.mpd is None
        assert result.sql is None
        assert "id_client [FK -> CLIENT.id_client]" in result.output_text(OutputTarget.MLD)

    def test_mld_to_mpd(self):
        result = MerisePipeline().run(SIMPLE_MLD, ModelLevel.MLD, OutputTarget.MPD)

        assert result.completed_stages == [PipelineStage.PARSE, PipelineStage.VALIDATE, PipelineStage.MLD_TO_MPD]
        assert result.output_text(OutputTarget.MPD).startswith("TABLE CLIENT {\n    id_client INT [PK] [NOT NULL]")

    def test_mld_to_mld_only_validates(self):
        result = MerisePipeline().run(SIMPLE_MLD, ModelLevel.MLD, OutputTarget.MLD)

        assert result.completed_stages == [PipelineStage.PARSE, PipelineStage.VALIDATE]
        assert result.mpd is None
        assert result.output_text(OutputTarget.MLD) == result.mld.to_text()

    def test_mpd_to_sql(self):
        result = MerisePipeline().run(SIMPLE_MPD, ModelLevel.MPD, OutputTarget.SQL)

        assert result.completed_stages == [
            PipelineStage.PARSE, PipelineStage.VALIDATE, PipelineStage.GENERATE_SQL,
        ]
        assert "CHECK (total >= 0)" in result.sql

    def test_target_above_input_level(self):
        with pytest.raises(ValueError):
            MerisePipeline().run(SIMPLE_MPD, ModelLevel.MPD, OutputTarget.MLD)

    def test_dialect_from_config(self):
        config = ConversionConfig(sql_dialect=SqlDialect.POSTGRESQL)
        result = MerisePipeline(config).run(CLIENT_COMMANDE_MCD, ModelLevel.MCD, OutputTarget.SQL)
        assert '"id_client" SERIAL NOT NULL' in result.sql


@pytest.mark.integration
class TestPipelineErrors:
    """Errors stop the run; warnings flow through."""

    def test_parse_error_stops_pipeline(self):
        result = MerisePipeline().run(INVALID_CARDINALITY_MCD, ModelLevel.MCD, OutputTarget.SQL)

        assert not result.succeeded
        assert result.failed_stage is PipelineStage.PARSE
        assert result.completed_stages == []
        assert result.mld is None
        assert result.sql is None
        assert result.validation.by_category(IssueCategory.INVALID_CARDINALITY)

    def test_validation_error_stops_pipeline(self):
        result = MerisePipeline().run(
            "TABLE X { id_x [PK], id_g [FK -> G.id_g] }", ModelLevel.MLD, OutputTarget.SQL
        )
        assert result.failed_stage is PipelineStage.VALIDATE
        assert result.mpd is None

    def test_raise_on_error(self):
        with pytest.raises(PipelineError) as exc_info:
            MerisePipeline().run(INVALID_CARDINALITY_MCD, ModelLevel.MCD, OutputTarget.SQL, raise_on_error=True)
        assert exc_info.value.stage is PipelineStage.PARSE
        assert exc_info.value.issues

    def test_orphan_warning_reported_once(self):
        result = MerisePipeline().run(ORPHAN_MCD, ModelLevel.MCD, OutputTarget.SQL)

        assert result.succeeded
        assert len(result.validation.by_category(IssueCategory.ORPHAN_ENTITY)) == 1

    def test_strict_validator_fails_on_warning(self):
        pipeline = MerisePipeline(validator=MeriseValidator(strict_mode=True))
        result = pipeline.run(ORPHAN_MCD, ModelLevel.MCD, OutputTarget.SQL)
        assert result.failed_stage is PipelineStage.VALIDATE

    def test_conversion_warnings_are_collected(self):
        result = MerisePipeline().run("""
            ENTITY PERSONNE { id_personne [PK] }
            ENTITY CLIENT { id_client [PK] }
            ENTITY ADRESSE { id_adresse [PK] }
            RELATION habite { ADRESSE (1,1), PERSONNE (0,n) }
            INHERITANCE h { PARENT PERSONNE CHILDREN CLIENT STRATEGY table_per_subclass }
        """, ModelLevel.MCD, OutputTarget.SQL)

        assert result.succeeded
        assert result.validation.by_category(IssueCategory.INVALID_REFERENCE)
        assert result.validation.by_category(IssueCategory.TYPE_MISMATCH)

    def test_summary(self):
        result = MerisePipeline().run(CLIENT_COMMANDE_MCD, ModelLevel.MCD, OutputTarget.MLD)
        summary = result.get_summary()
        assert summary.startswith("Pipeline completed")
        assert "mcd_to_mld" in summary

    def test_stage_statistics_are_merged(self):
        result = MerisePipeline().run(CLIENT_COMMANDE_MCD, ModelLevel.MCD, OutputTarget.MLD)
        assert "entity_count" in result.validation.statistics
        assert "table_count" in result.validation.statistics

    def test_failed_summary(self):
        result = MerisePipeline().run(INVALID_CARDINALITY_MCD, ModelLevel.MCD, OutputTarget.MLD)
        assert result.get_summary().startswith("Pipeline failed at parse")


@pytest.mark.integration
class TestEndToEndProperties:
    """Properties that hold for every well-formed conceptual model."""

    @pytest.mark.parametrize("mcd_text", [
        CLIENT_COMMANDE_MCD,
        TWO_RELATIONS_SAME_PAIR_MCD,
        MANY_TO_MANY_MCD,
        TERNARY_MCD,
        INHERITANCE_MCD,
        ASSOCIATIVE_MCD,
    ])
    @pytest.mark.parametrize("dialect", list(SqlDialect))
    def test_foreign_keys_match_referenced_types(self, mcd_text, dialect):
        result = MerisePipeline(ConversionConfig(sql_dialect=dialect)).run(mcd_text, ModelLevel.MCD, OutputTarget.SQL)

        assert result.succeeded
        checked = MeriseValidator().validate_mpd(result.mpd)
        assert checked.is_valid
        assert checked.by_category(IssueCategory.TYPE_MISMATCH) == []

    @pytest.mark.parametrize("mcd_text", [CLIENT_COMMANDE_MCD, MANY_TO_MANY_MCD, TERNARY_MCD, INHERITANCE_MCD])
    def test_tables_are_created_after_their_references(self, mcd_text):
        result = MerisePipeline().run(mcd_text, ModelLevel.MCD, OutputTarget.SQL)

        for table in result.mpd.tables:
            position = result.sql.index(f"CREATE TABLE `{table.name}`")
            for referenced in table.referenced_tables():
                assert result.sql.index(f"CREATE TABLE `{referenced}`") < position
