import pandas as pd
import pytest

from engine import (
    available_options,
    build_matrix,
    filter_rounds,
    load_schedule_csv,
    records_from_frame,
)


CSV = (
    " Round ,Players,Courts,1a,1b,1c,1d,b1,b2\n"
    "1,5,1,1,2,3,4,5,x\n"
    ",,,,,,,,\n"
    "2,5,1,1,3,2,,4,\n"
)


def test_load_keeps_text_and_drops_unlabelled_rows(tmp_path) -> None:
    path = tmp_path / "schedule.csv"
    path.write_text(CSV)

    df = load_schedule_csv(path)

    assert len(df) == 2
    assert "Round" in df.columns
    assert df.loc[1, "1d"] == ""
    assert df.loc[0, "Players"] == "5"


def test_loaded_records_feed_the_filter(tmp_path) -> None:
    path = tmp_path / "schedule.csv"
    path.write_text(CSV)

    rounds = filter_rounds(records_from_frame(load_schedule_csv(path)), 5, 1, 5)

    assert [r.label for r in rounds] == ["1", "2"]
    assert len(rounds[0].matches) == 1
    assert rounds[1].matches == ()          # 1d blank
    assert rounds[1].byes == ("4",)


def test_missing_tag_columns(tmp_path) -> None:
    path = tmp_path / "schedule.csv"
    path.write_text("Round,1a,1b,1c,1d\n1,1,2,3,4\n")

    with pytest.raises(ValueError, match="Courts"):
        load_schedule_csv(path)


def test_records_from_frame_blanks_missing_values() -> None:
    df = pd.DataFrame({"Round": ["1"], "Players": ["4"], "Courts": [None], "1a": [float("nan")]})
    assert records_from_frame(df) == [{"Round": "1", "Players": "4", "Courts": "", "1a": ""}]


def test_bundled_schedule() -> None:
    table = records_from_frame(load_schedule_csv())

    opts = available_options(table, 5, 1)
    assert opts["player_counts"] == [4, 5, 6, 8]
    assert opts["court_counts"] == [1]
    assert opts["round_counts"] == [1, 2, 3, 4, 5]

    matrix = build_matrix(filter_rounds(table, 5, 1, 5), 5)
    assert matrix.bye_counts == [1, 1, 1, 1, 1]
    for i in range(5):
        for j in range(5):
            if i != j:
                assert matrix.teammate_counts[i][j] == 1
