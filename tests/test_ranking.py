"""
Tests for deterministic friends ranking.
"""

import random
from types import SimpleNamespace

from fitrank.data_models.competition import BPRResult
from fitrank.utils.ranking import RankingUtility


def user(user_id, bpr, count, average):
    return {'id': user_id, 'bpr': bpr, 'competitions_count': count, 'weighted_average': average}


def rating(bpr, count, average):
    return BPRResult(
        bpr=bpr,
        competitions_count=count,
        is_provisional=count < 3,
        weighted_average=average,
        total_weight=1.0
    )


def test_ranks_by_bpr_descending():
    ranked = RankingUtility.rank_users([
        user('a', 0.51, 4, 0.52),
        user('b', 0.72, 9, 0.80),
        user('c', 0.60, 2, 0.90),
    ])

    assert [entry.id for entry in ranked] == ['b', 'c', 'a']
    assert [entry.rank for entry in ranked] == [1, 2, 3]


def test_tie_on_bpr_prefers_more_competitions():
    ranked = RankingUtility.rank_users([
        user('a', 0.60, 3, 0.70),
        user('b', 0.60, 8, 0.65),
    ])

    assert [entry.id for entry in ranked] == ['b', 'a']


def test_tie_on_bpr_and_count_prefers_higher_weighted_average():
    ranked = RankingUtility.rank_users([
        user('a', 0.60, 5, 0.62),
        user('b', 0.60, 5, 0.71),
    ])

    assert [entry.id for entry in ranked] == ['b', 'a']


def test_full_tie_prefers_lower_id():
    ranked = RankingUtility.rank_users([
        user('zed', 0.60, 5, 0.70),
        user('amy', 0.60, 5, 0.70),
        user('Bob', 0.60, 5, 0.70),
    ])

    # Code point order: uppercase sorts before lowercase
    assert [entry.id for entry in ranked] == ['Bob', 'amy', 'zed']


def test_ranking_is_independent_of_input_order():
    users = [
        user('u1', 0.55, 3, 0.60),
        user('u2', 0.55, 3, 0.60),
        user('u3', 0.55, 4, 0.58),
        user('u4', 0.62, 1, 1.00),
        user('u5', 0.50, 0, 0.50),
        user('u6', 0.55, 3, 0.61),
        user('u7', 0.50, 0, 0.50),
    ]
    expected = RankingUtility.rank_users(users)
    shuffler = random.Random(1234)

    for _ in range(25):
        shuffled = list(users)
        shuffler.shuffle(shuffled)
        assert RankingUtility.rank_users(shuffled) == expected

    assert [entry.id for entry in expected] == ['u4', 'u3', 'u6', 'u1', 'u2', 'u5', 'u7']


def test_rank_users_is_idempotent_and_pure():
    users = [user('a', 0.5, 1, 0.5), user('b', 0.7, 4, 0.8)]
    snapshot = [dict(u) for u in users]

    first = RankingUtility.rank_users(users)
    second = RankingUtility.rank_users(users)

    assert first == second
    assert users == snapshot


def test_provisional_flag_is_derived_when_missing():
    ranked = RankingUtility.rank_users([user('a', 0.5, 2, 0.5), user('b', 0.5, 3, 0.5)])

    flags = {entry.id: entry.is_provisional for entry in ranked}
    assert flags == {'a': True, 'b': False}


def test_accepts_objects_with_attributes():
    ranked = RankingUtility.rank_users([
        SimpleNamespace(id='x', bpr=0.4, competitions_count=5, weighted_average=0.3, is_provisional=False),
        SimpleNamespace(id='y', bpr=0.6, competitions_count=1, weighted_average=0.9, is_provisional=True),
    ])

    assert [(entry.id, entry.rank, entry.is_provisional) for entry in ranked] == [
        ('y', 1, True),
        ('x', 2, False),
    ]


def test_rank_users_empty():
    assert RankingUtility.rank_users([]) == []


def test_percentile():
    assert RankingUtility.calculate_percentile(1, 1) == 0
    assert RankingUtility.calculate_percentile(1, 5) == 100
    assert RankingUtility.calculate_percentile(5, 5) == 0
    assert RankingUtility.calculate_percentile(3, 5) == 50
    assert RankingUtility.calculate_percentile(2, 3) == 50
    # 7 / 8 = 87.5 rounds up
    assert RankingUtility.calculate_percentile(2, 9) == 88
    assert RankingUtility.calculate_percentile(2, 4) == 67


def test_percentile_divides_before_scaling():
    # 23 / 40 * 100 is just under 57.5 in floating point
    assert RankingUtility.calculate_percentile(18, 41) == 57


def test_friends_rankings_without_friends():
    result = RankingUtility.calculate_friends_rankings('me', rating(0.58, 1, 1.0), {})

    assert result.friends_rank == 1
    assert result.total_friends == 1
    assert result.friends_percentile == 0
    assert result.bpr_score == 0.58
    assert result.is_provisional is True
    assert result.competitions_count == 1
    assert [entry.id for entry in result.rankings] == ['me']


def test_friends_rankings_places_user_among_friends():
    friends = {
        'ann': rating(0.70, 10, 0.80),
        'ben': rating(0.50, 0, 0.50),
        'cat': rating(0.61, 6, 0.70),
    }

    result = RankingUtility.calculate_friends_rankings('me', rating(0.61, 6, 0.72), friends)

    assert [entry.id for entry in result.rankings] == ['ann', 'me', 'cat', 'ben']
    assert result.friends_rank == 2
    assert result.total_friends == 4
    assert result.friends_percentile == 67
    assert result.bpr_score == 0.61
    assert result.is_provisional is False
    assert result.entry_for('cat').rank == 3
    assert result.entry_for('nobody') is None


def test_friends_rankings_accepts_pairs_and_ignores_self():
    pairs = [('ann', rating(0.40, 3, 0.30)), ('me', rating(0.99, 40, 1.0))]

    result = RankingUtility.calculate_friends_rankings('me', rating(0.55, 4, 0.60), pairs)

    assert [entry.id for entry in result.rankings] == ['me', 'ann']
    assert result.rankings[0].bpr == 0.55
    assert result.friends_percentile == 100
