from pathlib import Path

from db.splitter import join_statements, split_statements

MIGRATION_FILE = Path(__file__).resolve().parents[1] / "database" / "complete-migration.sql"

FUNCTION_SQL = """\
CREATE OR REPLACE FUNCTION bump_counter()
RETURNS TRIGGER AS $$
BEGIN
    UPDATE counters SET is_active = TRUE;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;
"""


def sqls(text):
    return [s.sql for s in split_statements(text)]


def test_two_simple_statements():
    assert sqls("SELECT 1;\nSELECT 2;\n") == ["SELECT 1;", "SELECT 2;"]


def test_comments_and_blank_lines_only():
    assert split_statements("-- header\n\n   \n  -- indented comment\n--\n") == []


def test_empty_input():
    assert split_statements("") == []


def test_dollar_quoted_body_is_not_split_at_inner_semicolons():
    statements = split_statements(FUNCTION_SQL)
    assert len(statements) == 1
    assert statements[0].sql == FUNCTION_SQL.strip()


def test_comment_lines_inside_dollar_quote_are_kept():
    text = (
        "CREATE FUNCTION f() RETURNS void AS $fn$\n"
        "BEGIN\n"
        "-- not a comment to the splitter;\n"
        "\n"
        "    PERFORM 1;\n"
        "END;\n"
        "$fn$ LANGUAGE plpgsql;\n"
    )
    [statement] = split_statements(text)
    assert "-- not a comment to the splitter;" in statement.sql
    assert "\n\n" in statement.sql


def test_named_tag_only_closes_on_same_tag():
    text = (
        "DO $outer$\n"
        "BEGIN\n"
        "    EXECUTE $$SELECT 1$$;\n"
        "END;\n"
        "$outer$;\n"
        "SELECT 2;\n"
    )
    statements = sqls(text)
    assert len(statements) == 2
    assert statements[0].endswith("$outer$;")
    assert statements[1] == "SELECT 2;"


def test_comments_between_statements_are_dropped():
    text = "-- create\nCREATE TABLE a (id INT);\n-- index\nCREATE INDEX i ON a(id);\n"
    assert sqls(text) == ["CREATE TABLE a (id INT);", "CREATE INDEX i ON a(id);"]


def test_multiline_statement_keeps_its_lines():
    text = "CREATE TABLE a (\n    id INT,\n    name TEXT\n);\n"
    assert sqls(text) == ["CREATE TABLE a (\n    id INT,\n    name TEXT\n);"]


def test_trailing_statement_without_semicolon():
    assert sqls("SELECT 1;\nSELECT 2") == ["SELECT 1;", "SELECT 2"]


def test_statements_are_indexed_in_order():
    statements = split_statements("SELECT 1;\nSELECT 2;\nSELECT 3;\n")
    assert [s.index for s in statements] == [0, 1, 2]


def test_crlf_line_endings():
    assert sqls("SELECT 1;\r\nSELECT 2;\r\n") == ["SELECT 1;", "SELECT 2;"]


def test_split_is_deterministic():
    text = MIGRATION_FILE.read_text(encoding="utf-8")
    assert split_statements(text) == split_statements(text)


def test_rejoined_statements_split_the_same_way():
    text = MIGRATION_FILE.read_text(encoding="utf-8") + FUNCTION_SQL
    statements = split_statements(text)
    assert split_statements(join_statements(statements)) == statements


def test_single_line_dollar_body_is_a_known_limitation():
    # Only the first delimiter on a line is seen, so the quote never closes
    # and everything after it lands in the same statement.
    text = "CREATE FUNCTION one() RETURNS int AS $$ SELECT 1; $$ LANGUAGE sql;\nSELECT 2;\n"
    statements = split_statements(text)
    assert len(statements) == 1
    assert statements[0].sql.endswith("SELECT 2;")


def test_shipped_migration_file():
    statements = split_statements(MIGRATION_FILE.read_text(encoding="utf-8"))
    assert len(statements) == 14
    assert statements[0].sql == "CREATE EXTENSION IF NOT EXISTS pgcrypto;"
    function = statements[7].sql
    assert function.startswith("CREATE OR REPLACE FUNCTION set_updated_at()")
    assert function.endswith("$$ LANGUAGE plpgsql;")
    assert "NEW.updated_at = NOW();" in function
    assert all(not s.sql.startswith("--") for s in statements)


def test_only_newline_ends_a_line():
    text = (
        "INSERT INTO system_settings (key, value) VALUES ('motd', 'line1\u2028line2');\n"
        "CREATE FUNCTION banner() RETURNS text AS $$\n"
        "BEGIN\n"
        "    RETURN 'page\x0cbreak\x0bvtab\x85nel';\n"
        "END;\n"
        "$$ LANGUAGE plpgsql;\n"
    )
    insert, function = sqls(text)
    assert insert.endswith("'line1\u2028line2');")
    assert "'page\x0cbreak\x0bvtab\x85nel'" in function
