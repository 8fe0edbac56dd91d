from echosense.notes.classifier import NoteClassifier
from echosense.notes.models import NoteCategory, TranscriptEntry


def _entry(text: str, speaker_id: int = 0, timestamp: int = 0) -> TranscriptEntry:
    return TranscriptEntry(speaker_id=speaker_id, text=text, timestamp=timestamp)


def test_question_mark_always_yields_question():
    notes = NoteClassifier().classify([_entry("Ok?")], session_id=1)
    assert [note.category for note in notes] == [NoteCategory.QUESTION]


def test_action_and_decision_both_emitted_in_order():
    entry = _entry("We decided to send the report", speaker_id=2, timestamp=4200)
    notes = NoteClassifier().classify([entry], session_id=9)
    assert [note.category for note in notes] == [NoteCategory.ACTION_ITEM, NoteCategory.DECISION]
    for note in notes:
        assert note.session_id == 9
        assert note.speaker_id == 2
        assert note.timestamp == 4200
        assert note.content == "We decided to send the report"


def test_matching_is_case_insensitive_and_keeps_original_text():
    notes = NoteClassifier().classify([_entry("IMPORTANT: Budget Approved")], session_id=1)
    assert [note.category for note in notes] == [NoteCategory.DECISION, NoteCategory.KEY_POINT]
    assert notes[0].content == "IMPORTANT: Budget Approved"


def test_long_statement_is_a_key_point():
    text = "alpha beta gamma delta epsilon zeta eta theta iota kappa lambda mu nu xi omicron pi"
    notes = NoteClassifier().classify([_entry(text)], session_id=1)
    assert [note.category for note in notes] == [NoteCategory.KEY_POINT]


def test_plain_chatter_yields_nothing():
    assert NoteClassifier().classify([_entry("Hello there")], session_id=1) == []


def test_notes_follow_entry_order():
    entries = [
        _entry("Why not?", speaker_id=1, timestamp=100),
        _entry("It was agreed", speaker_id=0, timestamp=200),
    ]
    notes = NoteClassifier().classify(entries, session_id=3)
    assert [(note.category, note.timestamp) for note in notes] == [
        (NoteCategory.QUESTION, 100),
        (NoteCategory.DECISION, 200),
    ]


def test_bookmark_note():
    note = NoteClassifier().bookmark(session_id=5, timestamp=12_000, speaker_id=1)
    assert note.category == NoteCategory.BOOKMARK
    assert note.content == "Bookmark"
    assert note.speaker_id == 1
    assert note.model_dump()["category"] == "BOOKMARK"
