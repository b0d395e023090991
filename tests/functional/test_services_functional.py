"""Service operations persisted through SQLite.

Each test starts from empty tables (see conftest). Answers are inserted with
raw SQL because recording responses is outside this service.
"""

from __future__ import annotations

import uuid
from typing import Optional

import pytest
from sqlalchemy import text as sql_text

from mission_forms.db.base import get_engine, transaction
from mission_forms.logic import forms_write, option_sets_write
from mission_forms.logic.catalog_write import create_mission, create_question
from mission_forms.logic.errors import DeletionError, NotFoundError, ValidationError
from mission_forms.logic.option_set_editing import OptioningChange
from mission_forms.logic.replication_write import replicate_batch, replicate_one
from mission_forms.logic.repository_option_sets import mission_option_count
from mission_forms.logic.usage import resolve_count


def _answer(form_id: str, questioning_id: str, option_id: Optional[str] = None) -> None:
    response_id = str(uuid.uuid4())
    with transaction() as conn:
        conn.execute(
            sql_text("INSERT INTO responses (response_id, form_id) VALUES (:r, :f)"),
            {"r": response_id, "f": form_id},
        )
        conn.execute(
            sql_text(
                "INSERT INTO answers (answer_id, response_id, questioning_id, option_id) VALUES (:a, :r, :q, :o)"
            ),
            {"a": str(uuid.uuid4()), "r": response_id, "q": questioning_id, "o": option_id},
        )


def _count(sql: str, **params) -> int:
    with get_engine().connect() as conn:
        return int(conn.execute(sql_text(sql), params).scalar() or 0)


def _yes_no(name: str = "Yes/No", mission_id: Optional[str] = None, is_standard: bool = False):
    return option_sets_write.create_option_set(
        name,
        [{"names": {"en": "Yes"}}, {"names": {"en": "No"}}],
        mission_id=mission_id,
        is_standard=is_standard,
    )


# -- option sets --------------------------------------------------------------


def test_option_set_round_trip_keeps_ranks_and_names() -> None:
    created = option_sets_write.create_option_set(
        "Colours",
        [{"names": {"en": "Red"}, "rank": 3}, {"names": {"en": "Blue", "fr": "Bleu"}, "rank": 1}],
        is_standard=True,
    )
    loaded = option_sets_write.get_option_set(created.id)
    assert loaded.name == "Colours" and loaded.is_standard is True
    assert [o.name() for o in loaded.options] == ["Blue", "Red"]
    assert [o.rank for o in loaded.optionings] == [1, 2]
    assert loaded.options[0].names == {"en": "Blue", "fr": "Bleu"}


def test_option_set_names_are_unique_per_mission() -> None:
    m1, m2 = create_mission("North"), create_mission("South")
    _yes_no(mission_id=m1.id)
    _yes_no(mission_id=m2.id)
    with pytest.raises(ValidationError) as excinfo:
        _yes_no(mission_id=m1.id)
    assert excinfo.value.code == "must_be_unique"
    with pytest.raises(ValidationError) as excinfo:
        _yes_no(mission_id=m1.id, is_standard=True)
    assert excinfo.value.code == "standard_with_mission"


def test_option_set_can_link_existing_option() -> None:
    first = _yes_no()
    yes = first.options[0]
    second = option_sets_write.create_option_set("Maybe", [{"option_id": yes.id}, {"names": {"en": "Maybe"}}])
    loaded = option_sets_write.get_option_set(second.id)
    assert loaded.options[0].id == yes.id
    assert _count("SELECT COUNT(*) FROM options") == 3


def test_update_optionings_persists_reorder_add_and_destroy() -> None:
    os_ = option_sets_write.create_option_set(
        "Colours", [{"names": {"en": "Red"}}, {"names": {"en": "Green"}}, {"names": {"en": "Blue"}}]
    )
    red, green, blue = os_.optionings
    option_sets_write.update_option_set_optionings(
        os_.id,
        [
            OptioningChange(id=red.id, rank=9),
            OptioningChange(id=green.id, destroy=True),
            OptioningChange(option_names={"en": "Pink"}),
        ],
    )
    loaded = option_sets_write.get_option_set(os_.id)
    assert [o.name() for o in loaded.options] == ["Blue", "Red", "Pink"]
    assert [o.rank for o in loaded.optionings] == [1, 2, 3]


def test_answered_optioning_cannot_be_destroyed() -> None:
    os_ = _yes_no()
    q = create_question("Smoker", "select_one", {"en": "Smoker?"}, option_set_id=os_.id)
    form = forms_write.create_form("Habits", [q.id])
    yes_oing = os_.optionings[0]
    _answer(form.id, form.questionings[0].id, option_id=yes_oing.option.id)

    with pytest.raises(DeletionError) as excinfo:
        option_sets_write.destroy_optioning(os_.id, yes_oing.id)
    assert excinfo.value.reason == DeletionError.IN_USE
    assert len(option_sets_write.get_option_set(os_.id).optionings) == 2

    option_sets_write.destroy_optioning(os_.id, os_.optionings[1].id)
    loaded = option_sets_write.get_option_set(os_.id)
    assert [o.name() for o in loaded.options] == ["Yes"]
    with pytest.raises(DeletionError) as excinfo:
        option_sets_write.destroy_optioning(os_.id, loaded.optionings[0].id)
    assert excinfo.value.reason in (DeletionError.IN_USE, DeletionError.EMPTY_NOT_ALLOWED)


def test_option_set_in_use_cannot_be_deleted() -> None:
    used, unused = _yes_no("Used"), _yes_no("Unused")
    create_question("Smoker", "select_one", {"en": "Smoker?"}, option_set_id=used.id)
    with pytest.raises(DeletionError):
        option_sets_write.delete_option_set(used.id)
    option_sets_write.delete_option_set(unused.id)
    with pytest.raises(NotFoundError):
        option_sets_write.get_option_set(unused.id)
    # shared options survive the set
    assert _count("SELECT COUNT(*) FROM options") == 4


# -- questions and forms --------------------------------------------------------


def test_question_codes_are_unique_per_mission() -> None:
    create_question("Age", "integer", {"en": "Age"})
    with pytest.raises(ValidationError) as excinfo:
        create_question("Age", "integer", {"en": "Age again"})
    assert excinfo.value.code == "must_be_unique"
    with pytest.raises(ValidationError) as excinfo:
        create_question("Colour", "select_one", {"en": "Colour"}, option_set_id="missing")
    assert excinfo.value.code == "option_set_not_found"


def test_reorder_and_remove_questionings_persist() -> None:
    qs = [create_question(code, "integer", {"en": code}) for code in ("A", "B", "C")]
    form = forms_write.create_form("Survey", [q.id for q in qs])
    a, b, c = form.questionings
    forms_write.reorder_questionings(form.id, {a.id: 10})
    loaded, _ = forms_write.get_form(form.id)
    assert [q.question.code for q in loaded.questionings] == ["B", "C", "A"]

    _answer(form.id, c.id)
    with pytest.raises(DeletionError):
        forms_write.remove_questionings(form.id, [b.id, c.id])
    forms_write.remove_questionings(form.id, [b.id])
    loaded, _ = forms_write.get_form(form.id)
    assert [(q.question.code, q.rank) for q in loaded.questionings] == [("C", 1), ("A", 2)]
    with pytest.raises(ValidationError) as excinfo:
        forms_write.remove_questionings(form.id, ["not-on-form"])
    assert excinfo.value.code == "questioning_not_on_form"


def test_repeated_questioning_ids_are_removed_once() -> None:
    qs = [create_question(code, "integer", {"en": code}) for code in ("A", "B")]
    form = forms_write.create_form("Survey", [q.id for q in qs])
    a, b = form.questionings
    forms_write.remove_questionings(form.id, [a.id, a.id])
    loaded, _ = forms_write.get_form(form.id)
    assert [(q.question.code, q.rank) for q in loaded.questionings] == [("B", 1)]


def test_publication_state_is_persisted() -> None:
    form = forms_write.create_form("Survey", [create_question("A", "integer", {"en": "A"}).id])
    forms_write.publish_form(form.id)
    forms_write.record_download(form.id)
    loaded, _ = forms_write.get_form(form.id)
    assert loaded.published is True and loaded.downloads == 1
    assert loaded.current_version.sequence == 1

    forms_write.flag_form_for_upgrade(form.id)
    forms_write.unpublish_form(form.id)
    forms_write.publish_form(form.id)
    loaded, _ = forms_write.get_form(form.id)
    assert loaded.current_version.sequence == 2 and loaded.downloads == 0
    assert _count("SELECT COUNT(*) FROM form_versions WHERE form_id = :f", f=form.id) == 2
    assert _count("SELECT COUNT(*) FROM form_versions WHERE form_id = :f AND is_current = :t", f=form.id, t=True) == 1


def test_form_names_are_validated() -> None:
    forms_write.create_form("Survey")
    with pytest.raises(ValidationError) as excinfo:
        forms_write.create_form("Survey")
    assert excinfo.value.code == "must_be_unique"
    with pytest.raises(ValidationError) as excinfo:
        forms_write.create_form("Survey", ["no-such-question"])
    assert excinfo.value.code == "question_not_found"
    with pytest.raises(NotFoundError):
        forms_write.get_form("no-such-form")


# -- replication ------------------------------------------------------------------


def _standard_form(name: str, option_set_id: str, codes=("Smoker",)):
    questions = [
        create_question(code, "select_one", {"en": code}, option_set_id=option_set_id, is_standard=True)
        for code in codes
    ]
    return forms_write.create_form(name, [q.id for q in questions], is_standard=True)


def test_template_form_replicated_into_mission_is_persisted() -> None:
    mission = create_mission("North")
    yes_no = _yes_no(is_standard=True)
    template = _standard_form("Habits", yes_no.id, codes=("Smoker", "Drinker"))

    copy = replicate_one("form", template.id, mission.id)

    loaded, _ = forms_write.get_form(copy.id)
    assert loaded.name == "Habits" and loaded.mission_id == mission.id
    assert loaded.standard_id == template.id and loaded.is_standard is False
    assert [q.question.code for q in loaded.questionings] == ["Smoker", "Drinker"]
    option_set_ids = {q.question.option_set.id for q in loaded.questionings}
    assert len(option_set_ids) == 1 and yes_no.id not in option_set_ids
    with get_engine().connect() as conn:
        assert mission_option_count(conn, mission.id) == 2


def test_separate_replications_reuse_earlier_copies() -> None:
    mission = create_mission("North")
    yes_no = _yes_no(is_standard=True)
    first = _standard_form("Habits", yes_no.id)
    q_id = first.questionings[0].question.id
    second = forms_write.create_form("More habits", [q_id], is_standard=True)

    replicate_one("form", first.id, mission.id)
    replicate_one("form", second.id, mission.id)

    assert _count("SELECT COUNT(*) FROM questions WHERE mission_id = :m", m=mission.id) == 1
    assert _count("SELECT COUNT(*) FROM option_sets WHERE mission_id = :m", m=mission.id) == 1
    assert _count("SELECT COUNT(*) FROM options WHERE mission_id = :m", m=mission.id) == 2


def test_batch_replication_copies_shared_option_once() -> None:
    mission = create_mission("North")
    a = _yes_no("A", is_standard=True)
    shared = a.options[0]
    b = option_sets_write.create_option_set(
        "B", [{"option_id": shared.id}, {"names": {"en": "Maybe"}}], is_standard=True
    )

    copies = replicate_batch([("option_set", a.id), ("option_set", b.id)], mission.id)

    a_copy = option_sets_write.get_option_set(copies[0].id)
    b_copy = option_sets_write.get_option_set(copies[1].id)
    assert a_copy.options[0].id == b_copy.options[0].id
    assert a_copy.options[0].id != shared.id
    assert _count("SELECT COUNT(*) FROM options WHERE mission_id = :m", m=mission.id) == 3


def test_batch_replication_is_all_or_nothing() -> None:
    mission = create_mission("North")
    a = _yes_no("A", is_standard=True)
    with pytest.raises(NotFoundError):
        replicate_batch([("option_set", a.id), ("option_set", "missing")], mission.id)
    assert _count("SELECT COUNT(*) FROM option_sets WHERE mission_id = :m", m=mission.id) == 0
    with pytest.raises(NotFoundError) as excinfo:
        replicate_one("option_set", a.id, "no-such-mission")
    assert excinfo.value.code == "mission_not_found"
    with pytest.raises(ValidationError):
        replicate_one("option", a.options[0].id, mission.id)


def test_duplicate_within_mission_is_suffixed_and_links_questions() -> None:
    mission = create_mission("North")
    q = create_question("Age", "integer", {"en": "Age"}, mission_id=mission.id)
    form = forms_write.create_form("Survey", [q.id], mission_id=mission.id)

    copy = replicate_one("form", form.id)

    loaded, _ = forms_write.get_form(copy.id)
    assert loaded.name == "Survey 2" and loaded.mission_id == mission.id
    assert loaded.questionings[0].question.id == q.id
    assert loaded.standard_id is None


def test_published_copy_count_of_standard_form() -> None:
    yes_no = _yes_no(is_standard=True)
    template = _standard_form("Habits", yes_no.id)
    for name in ("North", "South"):
        copy = replicate_one("form", template.id, create_mission(name).id)
        if name == "North":
            forms_write.publish_form(copy.id)
    _, published = forms_write.get_form(template.id)
    assert resolve_count(published) == 1
