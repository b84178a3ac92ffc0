from app.core.normalizer import normalize_points


def test_normalize_strips_markdown_bullet_and_bold() -> None:
    assert normalize_points("- **Triggers** include stress") == ["Triggers include stress"]


def test_normalize_drops_headers_separators_and_short_lines() -> None:
    raw = "# Causes\n\n---\n===\n: note\nToo short\nHydration matters for most people.\n"
    assert normalize_points(raw) == ["Hydration matters for most people."]


def test_normalize_keeps_order_and_duplicates() -> None:
    raw = "Second point comes first here.\nFirst point comes second here.\nSecond point comes first here."
    assert normalize_points(raw) == [
        "Second point comes first here.",
        "First point comes second here.",
        "Second point comes first here.",
    ]


def test_normalize_collapses_whitespace_and_nested_markers() -> None:
    raw = "  •  - ###   Drink   water\tthroughout the day  \r\n"
    assert normalize_points(raw) == ["Drink water throughout the day"]


def test_normalize_empty_input() -> None:
    assert normalize_points("") == []
    assert normalize_points(None) == []
    assert normalize_points("\n\n   \n") == []


def test_normalize_is_idempotent() -> None:
    raw = (
        "## Summary\n"
        "* __Sleep__ seven to nine hours every night.\n"
        "- Limit caffeine after noon, including tea and soda.\n"
        "1. Numbered items stay as they are.\n"
    )
    once = normalize_points(raw)
    assert once == [
        "Sleep seven to nine hours every night.",
        "Limit caffeine after noon, including tea and soda.",
        "1. Numbered items stay as they are.",
    ]
    assert normalize_points("\n".join(once)) == once


def test_normalize_stars_inside_underscores_do_not_reappear() -> None:
    once = normalize_points("Drink more water _*_ every single day")
    assert once == ["Drink more water every single day"]
    assert normalize_points("\n".join(once)) == once


def test_normalize_never_emits_markers_or_short_points() -> None:
    raw = "\n".join(
        [
            "#",
            "- ",
            "• • Gentle stretching helps stiffness.",
            "*** Bold emphasis is stripped fully ***",
            "- = not a separator once the bullet goes",
            "abcdefghij",
            "abcdefghijk",
        ]
    )
    points = normalize_points(raw)
    assert points == [
        "Gentle stretching helps stiffness.",
        "Bold emphasis is stripped fully",
        "abcdefghijk",
    ]
    for point in points:
        assert len(point) > 10
        assert not point.startswith(("#", "-", "•", "*"))
