from atelier.core.domain.typing_stats import PASSAGES, compute_typing_stats, next_passage

TARGET = "Design is a conversation between material and intention."


def test_nothing_typed_is_fully_accurate_and_zero_wpm():
    stats = compute_typing_stats(TARGET, "", started_at=None)
    assert stats.accuracy == 100
    assert stats.wpm == 0
    assert stats.complete is False


def test_accuracy_counts_position_matches():
    # 3 of 4 characters match
    stats = compute_typing_stats("abcd", "abxd", started_at=0.0, finished_at=60.0)
    assert stats.accuracy == 75


def test_extra_characters_count_as_errors():
    stats = compute_typing_stats("ab", "abcd", started_at=0.0, finished_at=60.0)
    assert stats.accuracy == 50


def test_wpm_uses_elapsed_minutes():
    stats = compute_typing_stats(TARGET, TARGET, started_at=100.0, finished_at=130.0)
    # 8 words in half a minute
    assert stats.wpm == 16
    assert stats.complete is True


def test_running_attempt_uses_now():
    stats = compute_typing_stats(TARGET, "Design is", started_at=0.0, now=60.0)
    assert stats.wpm == 2
    assert stats.complete is False


def test_next_passage_cycles():
    assert next_passage(PASSAGES[0]) == PASSAGES[1]
    assert next_passage(PASSAGES[-1]) == PASSAGES[0]
    assert next_passage("unknown") == PASSAGES[0]


def test_halves_round_up():
    # 1 of 8 characters correct is 12.5%, 5 words in 2 minutes is 2.5 wpm
    stats = compute_typing_stats("abcdefgh", "axxxxxxx", started_at=0.0, finished_at=120.0)
    assert stats.accuracy == 13

    stats = compute_typing_stats(TARGET, "one two three four five", started_at=0.0, finished_at=120.0)
    assert stats.wpm == 3
