from icondupe.group.ranking import filter_names, rank_scores, similarity_band


def test_rank_scores_orders_by_similarity_then_name():
    rows = rank_scores({"beta": 80.0, "alpha": 80.0, "gamma": 99.5, "delta": 10.0})
    assert [row.name for row in rows] == ["gamma", "alpha", "beta", "delta"]
    assert rows[0].similarity == 99.5


def test_similarity_band_thresholds():
    assert similarity_band(95.0) == "duplicate"
    assert similarity_band(90.0) == "similar"
    assert similarity_band(75.0) == "similar"
    assert similarity_band(60.0) == "related"
    assert similarity_band(50.0) is None
    assert similarity_band(85.0, duplicate=80.0) == "duplicate"


def test_filter_names_is_case_insensitive():
    names = ["SearchIcon", "UserIcon", "search-outline"]
    assert filter_names(names, "search") == ["SearchIcon", "search-outline"]
    assert filter_names(names, "") == names
    assert filter_names(names, None) == names
