from festresults.decode import decode
from festresults.grouping import group, ticker_items
from festresults.models import ResultRecord

from conftest import HEADER, SAMPLE_FEED, feed_line


def _rec(code, chest, name):
    return ResultRecord(program_code=code, chest_no=chest, candidate_name=name)


def test_most_recently_appearing_program_comes_first():
    records = decode(SAMPLE_FEED)

    groups = group(records, records)

    assert [g.program_code for g in groups] == ["P3", "P2", "P1"]
    assert [g.latest_index for g in groups] == [4, 3, 1]


def test_program_reappearing_late_moves_to_front():
    text = "\n".join([
        HEADER,
        feed_line("P1", "Solo Song", candidate="Anu", chest="101"),
        feed_line("P2", "Essay", candidate="Basil", chest="205"),
        feed_line("P1", "Solo Song", candidate="Cyril", chest="301"),
    ])
    records = decode(text)

    groups = group(records, records)

    assert [g.program_code for g in groups] == ["P1", "P2"]
    assert [e.candidate_name for e in groups[0].entries] == ["Anu", "Cyril"]


def test_filtered_subset_is_ranked_against_full_sequence():
    source = decode(SAMPLE_FEED)
    # independently rebuilt copies, not the same objects
    subset = [r.model_copy() for r in source if r.candidate_name != "Anu"]

    groups = group(subset, source)

    assert [g.program_code for g in groups] == ["P3", "P2", "P1"]
    assert groups[1].latest_index == 2
    assert groups[2].latest_index == 1


def test_empty_program_code_is_not_grouped():
    records = [_rec("", "1", "Orphan"), _rec("P1", "2", "Anu")]

    groups = group(records, records)

    assert [g.program_code for g in groups] == ["P1"]


def test_ties_keep_first_appearance_order():
    source = [_rec("P1", "1", "Anu")]
    # neither group is found in source, both rank -1
    records = [_rec("P7", "9", "Zed"), _rec("P8", "8", "Yan")]

    groups = group(records, source)

    assert [g.program_code for g in groups] == ["P7", "P8"]
    assert {g.latest_index for g in groups} == {-1}


def test_entries_keep_input_order():
    records = decode(SAMPLE_FEED)

    (p1,) = [g for g in group(records, records) if g.program_code == "P1"]

    assert [e.position for e in p1.entries] == ["1", "2"]
    assert p1.program_name == "Solo Song"
    assert p1.program_section == "JUNIOR"


def test_ticker_items():
    records = decode(SAMPLE_FEED)
    assert ticker_items(group(records, records)) == ["P3: Quiz", "P2: Essay Writing", "P1: Solo Song"]
