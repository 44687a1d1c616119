import asyncio
import itertools

from backend.app.contracts import GroupConstraints, GroupParticipant, GroupSession
from backend.app.events import group_recorder
from backend.app.group_solver import (
    GroupConstraintSolver,
    matches_dietary,
    participant_penalty,
    price_ceiling,
    summarize_constraints,
)
from backend.tests.fakes import ScriptedProvider, make_restaurant


def _session(*participants):
    return GroupSession(
        id="abcd1234",
        creator_id=participants[0].id if participants else "nobody",
        date="Friday",
        time="7:00 PM",
        location="Testville",
        participants=list(participants),
    )


def _person(name, **constraints):
    return GroupParticipant(name=name, constraints=GroupConstraints(**constraints))


def _solve(pool, session):
    recorder = group_recorder()
    result = asyncio.run(GroupConstraintSolver(ScriptedProvider(pool), recorder.emit).solve(session))
    return result, recorder


def test_excluded_cuisine_loses_to_dietary_match():
    thai = make_restaurant("thai", categories=["Thai"], rating=4.9, reviews=3000)
    veggie = make_restaurant("veggie", categories=["Vegetarian", "Italian"], rating=4.0)
    session = _session(_person("Ana", cuisine_no=["Thai"]), _person("Ben", dietary=["vegetarian"]))

    result, recorder = _solve([thai, veggie], session)

    assert result.solution is not None and result.solution.id == "veggie"
    assert result.satisfaction_score == 100
    assert [step.participant_name for step in result.elimination_log] == ["Ana", "Ben"]
    assert result.elimination_log[0].eliminated_count == 1
    assert recorder.types[0] == "solving_started"
    assert recorder.types[-1] == "solution_found"
    assert recorder.events[-1].data["solution"]["id"] == "veggie"


def test_solver_is_idempotent_and_order_independent():
    pool = [
        make_restaurant("sushi", categories=["Japanese", "Sushi Bars"], price="$$$$", rating=4.8),
        make_restaurant("tacos", categories=["Mexican"], price="$", rating=4.2),
        make_restaurant("green", categories=["Vegan"], price="$$", rating=4.5),
        make_restaurant("steak", categories=["Steakhouses"], price="$$$$", rating=4.7),
    ]
    people = [
        _person("Ana", cuisine_yes=["japanese"], max_price=40),
        _person("Ben", dietary=["vegan"]),
        _person("Cy", cuisine_no=["mexican"], cuisine_yes=["vegan"]),
    ]

    baseline, _ = _solve(pool, _session(*people))
    again, _ = _solve(pool, _session(*people))
    assert (again.solution.id, again.satisfaction_score) == (baseline.solution.id, baseline.satisfaction_score)

    for order in itertools.permutations(people):
        result, _ = _solve(pool, _session(*order))
        assert result.solution.id == baseline.solution.id
        assert result.satisfaction_score == baseline.satisfaction_score


def test_all_negative_pool_still_picks_least_bad():
    pool = [
        make_restaurant("a", categories=["Thai"], rating=4.1),
        make_restaurant("b", categories=["Thai"], rating=4.6),
    ]
    people = [_person(name, cuisine_no=["thai"], dietary=["kosher"]) for name in ("A", "B")]

    result, _ = _solve(pool, _session(*people))

    assert result.solution is not None and result.solution.id == "b"
    assert result.satisfaction_score == 0
    assert len(result.candidates) == 2


def test_empty_pool_has_no_solution():
    result, recorder = _solve([], _session(_person("Ana")))
    assert result.solution is None
    assert result.satisfaction_score == 0
    assert recorder.types == ["solving_started", "solution_found"]


def test_contested_cuisine_is_ignored():
    thai = make_restaurant("thai", categories=["Thai"])
    penalty, reasons = participant_penalty(thai, GroupConstraints(cuisine_yes=["thai"], cuisine_no=["thai"]))
    assert penalty == 0
    assert reasons == []


def test_penalties_and_bonus():
    pricey = make_restaurant("p", categories=["Italian"], price="$$$$")
    penalty, reasons = participant_penalty(
        pricey, GroupConstraints(dietary=["halal"], cuisine_yes=["italian"], max_price=50)
    )
    # 30 dietary + 20 budget - 15 desired cuisine
    assert penalty == 35
    assert reasons == ["no halal options", "over budget"]


def test_dietary_keywords_and_price_ceiling():
    assert matches_dietary(make_restaurant("i", categories=["Indian"]), "vegetarian")
    assert matches_dietary(make_restaurant("g", name="Gluten Free Kitchen"), "gluten free")
    assert not matches_dietary(make_restaurant("s", categories=["Steakhouses"]), "vegan")
    assert price_ceiling(50) == 2
    assert price_ceiling(51) == 3


def test_summarize_constraints():
    assert summarize_constraints(GroupConstraints(max_price=0)) == "flexible"
    text = summarize_constraints(GroupConstraints(dietary=["vegan"], cuisine_no=["thai"], max_price=40))
    assert text == "vegan, no thai, max $40pp"
