from rules.submission import coerce_handle, coerce_score, validate_submission


def test_handle_required():
    ok, err = validate_submission(None, 10)
    assert not ok
    assert err == "Handle and score are required"

    ok, err = validate_submission("", 10)
    assert not ok

    ok, err = validate_submission({}, 10)
    assert not ok


def test_any_non_empty_handle_accepted():
    assert validate_submission("  ", 10)[0]
    assert validate_submission(42, 10)[0]

    assert coerce_handle(42) == "42"
    assert coerce_handle(4.0) == "4"
    assert coerce_handle(True) == "true"
    assert coerce_handle("  ") == "  "
    assert coerce_handle("AAA") == "AAA"
    assert coerce_handle(0) is None


def test_score_required_but_zero_allowed():
    ok, err = validate_submission("AAA", None)
    assert not ok
    assert err == "Handle and score are required"

    ok, err = validate_submission("AAA", 0)
    assert ok
    assert err == ""


def test_numeric_scores_are_coerced():
    assert coerce_score(12.5) == 12.5
    assert coerce_score(-3) == -3
    assert coerce_score(100.0) == 100
    assert isinstance(coerce_score(100.0), int)

    assert coerce_score("100") == 100
    assert isinstance(coerce_score("100"), int)
    assert coerce_score(" 2.5 ") == 2.5
    assert coerce_score("1e3") == 1000
    assert coerce_score("-7") == -7
    assert coerce_score(True) == 1
    assert coerce_score(False) == 0
    assert validate_submission("AAA", "100")[0]


def test_uncoercible_scores_rejected():
    for raw in (None, "", "   ", "abc", "12abc", "1_000", "nan", "inf", float("nan"), float("inf"), "1e400", [], {}):
        assert coerce_score(raw) is None, raw
        assert not validate_submission("AAA", raw)[0]
