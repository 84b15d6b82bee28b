import pytest
from core.attribute_discovery import AttributeDiscovery
from core.auto_correction import AutoCorrector, extract_conditions, troubleshoot_query
from core.errors import UpstreamError
from core.query_executor import QueryExecutor
from core.query_generator import QueryGenerator
from core.schema_inspector import SchemaInspector
from models.discovery import DiscoveryResult

IAR_QUESTION = "Show me users with the IAR_license field checked"
WRONG_KEY_SQL = (
    "SELECT u.ID FROM wp_users u JOIN wp_usermeta um ON u.ID = um.user_id "
    "WHERE um.meta_key = 'IAR_license' AND um.meta_value = '1'"
)
FIXED_SQL = (
    "SELECT u.ID, u.user_login FROM wp_users u JOIN wp_usermeta um ON u.ID = um.user_id "
    "WHERE um.meta_key = 'iar_license_status' AND um.meta_value = 'on'"
)


@pytest.fixture
def discovery(engine):
    return AttributeDiscovery(engine, "wp_").discover(IAR_QUESTION)


@pytest.fixture
def schema(engine):
    return SchemaInspector(engine, "wp_").inspect()


def test_extract_conditions_pairs_values_with_their_key():
    sql = (
        "SELECT * FROM m WHERE (meta_key = 'a' AND meta_value = 'x') "
        "OR (meta_key = \"b\" AND meta_value IN ('1', 'on')) OR meta_key = 'a'"
    )
    assert extract_conditions(sql) == [("a", "x", False), ("b", None, True)]


def test_extract_conditions_none_without_keys():
    assert extract_conditions("SELECT COUNT(*) FROM wp_users") == []


def test_unknown_key_gets_close_matches_and_value_check(discovery):
    report = troubleshoot_query(WRONG_KEY_SQL, discovery)
    assert "Attribute key 'IAR_license' not found in database" in report.issues
    assert report.suggestions[0].startswith("Did you mean one of these? iar_license_status")
    assert any("Value '1' not found for key 'iar_license_status'" in i for i in report.issues)
    assert "For checkbox 'iar_license_status', use: on" in report.suggestions


def test_known_key_wrong_value(discovery):
    sql = "SELECT * FROM wp_usermeta WHERE meta_key = 'IAR_LICENSE_STATUS' AND meta_value = 'true'"
    report = troubleshoot_query(sql, discovery)
    assert report.issues == [
        "Value 'true' not found for key 'iar_license_status'. Found values include: on, off",
    ]
    assert report.suggestions == ["For checkbox 'iar_license_status', use: on"]


def test_known_key_value_matching_is_case_insensitive(discovery):
    sql = "SELECT * FROM wp_usermeta WHERE meta_key = 'iar_license_status' AND meta_value = 'ON'"
    report = troubleshoot_query(sql, discovery)
    assert report.issues == []
    assert report.suggestions == []


def test_in_list_on_checkbox_gets_in_suggestion(discovery):
    sql = "SELECT * FROM wp_usermeta WHERE meta_key = 'iar_license_status' AND meta_value IN ('1', 'yes')"
    report = troubleshoot_query(sql, discovery)
    assert report.suggestions == ["For checkbox 'iar_license_status', try: meta_value IN ('on')"]


def test_unrelated_key_lists_available_keys(discovery):
    report = troubleshoot_query("SELECT * FROM wp_usermeta WHERE meta_key = 'zzz'", discovery)
    assert report.issues == ["Attribute key 'zzz' not found in database"]
    assert report.suggestions[0].startswith("Available discovered keys: iar_license_status")


def test_nothing_discovered_means_no_suggestions():
    report = troubleshoot_query("SELECT * FROM wp_usermeta WHERE meta_key = 'zzz'", DiscoveryResult())
    assert report.issues == ["Attribute key 'zzz' not found in database"]
    assert report.suggestions == []


def test_correction_success_replaces_query(engine, llm, discovery, schema):
    llm.replies = [f"```sql\n{FIXED_SQL}\n```"]
    corrector = AutoCorrector(QueryGenerator(llm), QueryExecutor(engine))
    sql, stats, report = corrector.correct(WRONG_KEY_SQL, schema, [], discovery)

    assert sql == FIXED_SQL
    assert stats.row_count == 12
    assert len(stats.rows) == 12
    assert stats.execution_time_ms >= 0
    assert report.corrected is True
    assert report.correction_error is None
    evidence = llm.calls[0][-1]["content"]
    assert evidence.startswith("The query returned 0 results. Investigation shows:")
    assert "iar_license_status" in evidence
    assert evidence.endswith("Return ONLY the SQL query, no explanations, no markdown formatting, just the raw SQL.")


def test_correction_without_suggestions_makes_no_call(engine, llm, schema):
    corrector = AutoCorrector(QueryGenerator(llm), QueryExecutor(engine))
    sql, stats, report = corrector.correct("SELECT ID FROM wp_users WHERE ID < 0", schema, [], DiscoveryResult())
    assert (sql, stats) == ("SELECT ID FROM wp_users WHERE ID < 0", None)
    assert report.corrected is False
    assert llm.calls == []


def test_rejected_correction_keeps_original(engine, llm, discovery, schema):
    llm.replies = ["DELETE FROM wp_usermeta"]
    corrector = AutoCorrector(QueryGenerator(llm), QueryExecutor(engine))
    sql, stats, report = corrector.correct(WRONG_KEY_SQL, schema, [], discovery)

    assert sql == WRONG_KEY_SQL
    assert stats is None
    assert report.corrected is False
    assert report.correction_error.startswith("ValidationRejected")


def test_empty_correction_keeps_original(engine, llm, discovery, schema):
    llm.replies = ["SELECT ID FROM wp_users WHERE ID < 0"]
    corrector = AutoCorrector(QueryGenerator(llm), QueryExecutor(engine))
    sql, stats, report = corrector.correct(WRONG_KEY_SQL, schema, [], discovery)

    assert sql == WRONG_KEY_SQL
    assert stats is None
    assert report.correction_error == "Corrected query also returned 0 rows"


def test_provider_failure_during_correction_is_recorded(engine, llm, discovery, schema):
    llm.replies = [UpstreamError("Provider API error: boom", status=500)]
    corrector = AutoCorrector(QueryGenerator(llm), QueryExecutor(engine))
    sql, stats, report = corrector.correct(WRONG_KEY_SQL, schema, [], discovery)

    assert sql == WRONG_KEY_SQL
    assert stats is None
    assert report.correction_error == "UpstreamError: Provider API error: boom"
