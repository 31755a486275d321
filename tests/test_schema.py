from vectorstores.schema import (
    CorpusSnapshot,
    ImageContent,
    ModalityType,
    Node,
    NodeWithScore,
    ScoredResult,
    TextContent,
    extract_text,
    sort_scored,
)


def test_node_generates_unique_ids() -> None:
    """Nodes without an explicit id get distinct generated ids."""

    first, second = Node(text="a"), Node(text="a")

    assert first.id_ != second.id_
    assert first.get_content() == "a"
    assert first.metadata == {}


def test_node_with_score_exposes_id() -> None:
    """NodeWithScore forwards the node id."""

    hit = NodeWithScore(node=Node(text="a", id_="n1"), score=0.5)

    assert hit.id_ == "n1"


def test_query_content_modality_and_text() -> None:
    """Only text content carries query text."""

    text = TextContent(text="cat")
    image = ImageContent(image=b"\x89PNG")

    assert text.modality is ModalityType.TEXT
    assert image.modality is ModalityType.IMAGE
    assert extract_text(text) == "cat"
    assert extract_text(image) is None


def test_sort_scored_breaks_ties_by_id() -> None:
    """Scores sort descending, equal scores by id ascending."""

    results = [
        ScoredResult(id="b", score=1.0),
        ScoredResult(id="c", score=2.0),
        ScoredResult(id="a", score=1.0),
    ]

    assert [r.id for r in sort_scored(results)] == ["c", "a", "b"]


def test_corpus_snapshot_length() -> None:
    """A snapshot's length is its document count."""

    snapshot = CorpusSnapshot(version="1", documents=(("1", "a"), ("2", "b")))

    assert len(snapshot) == 2
