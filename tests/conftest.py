import pytest

HEADER = (
    "Program Code,Name,Position,Section,Grade,Chest No,Candidate Name,Team Code,"
    "Remarks,Points,Judge 1,Judge 2,Judge 3,Total,Status"
)


def feed_line(code="", name="", position="", section="", grade="", chest="", candidate="", team="", status=""):
    cols = [code, name, position, section, grade, chest, candidate, team] + [""] * 6 + [status]
    return ",".join(cols)


SAMPLE_FEED = "\n".join([
    HEADER,
    feed_line("P1", "Solo Song", section="JUNIOR", status="Published"),
    feed_line(position="1", grade="A", chest="101", candidate="Anu", team="AR", status="Published"),
    feed_line(position="2", grade="B", chest="205", candidate="Basil", team="TD", status="Published"),
    feed_line("P2", "Essay Writing", "1", "SENIOR", "A", "301", "Cyril", "ZR"),
    feed_line(position="2", chest="102", candidate="Anu", team="AR"),
    feed_line("P3", "Quiz", section="SUB JUNIOR"),
    feed_line(position="1", grade="A", chest="206", candidate="Dana", team="TD", status="published"),
    feed_line(),
])


@pytest.fixture
def sample_feed():
    return SAMPLE_FEED
