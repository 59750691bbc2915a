import pytest

from medmigrate.extractors.sql_extractor import (
    SqlDumpExtractor,
    coerce_literal,
    format_literal,
    split_tuples,
    strip_comments,
    tokenize_tuple,
)
from medmigrate.models.migration import MigrationSource

from .dumps import MYSQLDUMP, PATIENT_DUMP


@pytest.fixture
def extractor():
    return SqlDumpExtractor(MigrationSource.PATIENT)


class TestCoerceLiteral:

    @pytest.mark.parametrize("text, expected", [
        ("NULL", None),
        ("null", None),
        ("42", 42),
        ("-7", -7),
        ("3.25", 3.25),
        ("TRUE", True),
        ("false", False),
        ("'hello'", "hello"),
        ('"hello"', "hello"),
        ("2024-01-31", "2024-01-31"),
        ("NOW()", "NOW()"),
    ])
    def test_coercion(self, text, expected):
        assert coerce_literal(text) == expected

    def test_bool_is_not_int(self):
        assert coerce_literal("TRUE") is True
        assert coerce_literal("1") == 1 and coerce_literal("1") is not True

    def test_format_literal_reads_back(self):
        for value in [None, True, False, 0, -12, 1.5, 1e-7, "", "it's", "back\\slash", "O'Neil; DROP"]:
            assert coerce_literal(format_literal(value)) == value

    def test_format_literal_rejects_nan(self):
        with pytest.raises(ValueError):
            format_literal(float("nan"))


class TestTokenizer:

    def test_quoted_commas_stay_in_value(self):
        literals = tokenize_tuple("1, 'Ruiz, Soto', NULL")
        assert [lit.value for lit in literals] == [1, "Ruiz, Soto", None]

    def test_escapes(self):
        literals = tokenize_tuple(r"'O\'Neil', 'O''Neil', 'a\nb', 'C:\\tmp'")
        assert [lit.value for lit in literals] == ["O'Neil", "O'Neil", "a\nb", "C:\\tmp"]

    def test_quoted_number_stays_string(self):
        literals = tokenize_tuple("'00123', 123")
        assert literals[0].value == "00123"
        assert literals[1].value == 123

    def test_empty_string_value(self):
        assert [lit.value for lit in tokenize_tuple("'', 1")] == ["", 1]

    def test_function_call_commas(self):
        literals = tokenize_tuple("CONCAT('a', 'b'), 2")
        assert len(literals) == 2
        assert literals[1].value == 2

    def test_unterminated_quote(self):
        with pytest.raises(ValueError):
            tokenize_tuple("1, 'open")

    def test_split_tuples_ignores_parens_in_strings(self):
        bodies = split_tuples("(1,'a)(b'),(2,'c')")
        assert bodies == ["1,'a)(b'", "2,'c'"]

    def test_split_tuples_unbalanced(self):
        with pytest.raises(ValueError):
            split_tuples("(1,2),(3")

    def test_strip_comments_keeps_quoted_markers(self):
        text = "INSERT INTO t (a) VALUES ('x -- y /* z */'); -- trailing\n/* block */"
        stripped = strip_comments(text)
        assert "'x -- y /* z */'" in stripped
        assert "trailing" not in stripped
        assert "block" not in stripped


class TestSqlDumpExtractor:

    def test_concrete_patient_dump(self, extractor):
        result = extractor.extract(PATIENT_DUMP)

        assert result.total_extracted == 2
        assert result.fields == ["id_patient", "nif", "first_name"]
        assert result.data == [
            {"id_patient": 1, "nif": "12345678", "first_name": "Ana"},
            {"id_patient": 2, "nif": None, "first_name": "Leo"},
        ]
        assert [r.id for r in result.records] == ["1", "2"]
        assert result.records[0].table_name == "patient_tbl"

    def test_full_mysqldump(self, extractor):
        result = extractor.extract(MYSQLDUMP)

        assert result.total_extracted == 3
        assert result.statements_parsed == 2
        assert not result.ddl_only
        assert result.data[0]["surname1"] == "Garc'ia"
        assert result.data[1]["surname1"] == "O'Neil"
        assert result.data[2]["surname1"] == "Ruiz; Soto"
        assert result.data[2]["birth_date"] is None

    def test_insert_without_columns(self, extractor):
        result = extractor.extract("INSERT INTO patient_tbl VALUES (1,'Ana'),(2,'Leo');")
        assert result.data == [
            {"field0": 1, "field1": "Ana"},
            {"field0": 2, "field1": "Leo"},
        ]

    def test_short_tuple_pads_with_none(self, extractor):
        result = extractor.extract("INSERT INTO patient_tbl (a, b, c) VALUES (1, 'x');")
        assert result.data == [{"a": 1, "b": "x", "c": None}]

    def test_fields_union_in_first_seen_order(self, extractor):
        dump = (
            "INSERT INTO patient_tbl (a, b) VALUES (1, 2);\n"
            "INSERT INTO patient_tbl (b, c) VALUES (3, 4);"
        )
        assert extractor.extract(dump).fields == ["a", "b", "c"]

    def test_ddl_only_dump(self, extractor):
        ddl = MYSQLDUMP.split("LOCK TABLES")[0]
        result = extractor.extract(ddl)

        assert result.ddl_only
        assert result.total_extracted == 0
        assert result.warnings == []

    def test_malformed_statement_is_skipped(self, extractor):
        dump = (
            "INSERT INTO patient_tbl (a) VALUES (1) junk (2);\n"
            "INSERT INTO patient_tbl (a) VALUES (3);"
        )
        result = extractor.extract(dump)

        assert result.data == [{"a": 3}]
        assert result.statements_skipped == 1
        assert len(result.warnings) == 1

    def test_open_quote_only_loses_its_own_statement(self, extractor):
        dump = (
            "INSERT INTO patient_tbl (id_patient, first_name) VALUES (1, 'Ana);\n"
            "INSERT INTO patient_tbl (id_patient, first_name) VALUES (2, 'Leo');\n"
            "INSERT INTO patient_tbl (id_patient, first_name) VALUES (3, 'Eva');\n"
        )
        result = extractor.extract(dump)

        assert result.data == [
            {"id_patient": 2, "first_name": "Leo"},
            {"id_patient": 3, "first_name": "Eva"},
        ]
        assert result.statements_parsed == 2
        assert result.statements_skipped == 1
        assert "Unterminated" in result.warnings[0]

    def test_statements_without_semicolons(self, extractor):
        dump = (
            "INSERT INTO patient_tbl (a) VALUES (1)\n"
            "INSERT INTO patient_tbl (a) VALUES (2)\n"
        )
        assert extractor.extract(dump).data == [{"a": 1}, {"a": 2}]

    def test_schema_qualified_table_name(self, extractor):
        dump = (
            "INSERT INTO `hdms`.`patient_tbl` (a, b) VALUES (1, 'Ana');\n"
            "INSERT INTO hdms.patient_tbl VALUES (2, 'Leo');"
        )
        result = extractor.extract(dump)

        assert result.data == [{"a": 1, "b": "Ana"}, {"field0": 2, "field1": "Leo"}]
        assert result.records[0].table_name == "patient_tbl"

    def test_schema_qualified_dump_with_structure(self, extractor):
        dump = MYSQLDUMP.replace("`patient_tbl`", "`hdms`.`patient_tbl`")
        result = extractor.extract(dump)

        assert not result.ddl_only
        assert result.total_extracted == 3

    def test_unreadable_insert_is_reported(self, extractor):
        result = extractor.extract("INSERT INTO patient_tbl SELECT * FROM old_patients;")
        assert result.total_extracted == 0
        assert result.warnings == ["Dump mentions INSERT INTO but no statement could be read"]

    def test_timing_is_recorded(self, extractor):
        result = extractor.extract(PATIENT_DUMP)
        assert result.duration_seconds is not None
        assert result.duration_seconds >= 0

    def test_csv_like_fallback(self, extractor):
        result = extractor.extract("id_patient,first_name\n1,Ana\n2,Leo\n")
        assert result.data == [
            {"id_patient": 1, "first_name": "Ana"},
            {"id_patient": 2, "first_name": "Leo"},
        ]

    def test_empty_text(self, extractor):
        result = extractor.extract("   \n")
        assert result.total_extracted == 0
        assert not result.ddl_only

    def test_extract_resets_between_runs(self, extractor):
        extractor.extract(PATIENT_DUMP)
        result = extractor.extract(PATIENT_DUMP)
        assert [r.id for r in result.records] == ["1", "2"]
