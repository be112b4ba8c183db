from eventapi.services.normalize import (
    map_incoming_questions,
    map_option,
    map_question,
    select_elements,
)


def test_flat_questions_with_type_are_used_in_order():
    incoming = {
        "questions": [
            {"name": "a", "type": "text"},
            {"name": "b", "type": "email"},
            {"name": "c", "type": "date"},
        ],
        "pages": [{"elements": [{"name": "ignored", "type": "text"}]}],
    }

    questions = map_incoming_questions(incoming)

    assert [q.q_id for q in questions] == ["a", "b", "c"]
    assert [q.type for q in questions] == ["text", "email", "date"]


def test_pages_elements_used_when_questions_lack_type():
    incoming = {
        "questions": [{"name": "untyped"}],
        "pages": [{"elements": [{"name": "p1", "type": "comment"}, {"name": "p2", "type": "rating"}]}],
    }

    questions = map_incoming_questions(incoming)

    assert [(q.q_id, q.type) for q in questions] == [("p1", "textarea"), ("p2", "rating")]


def test_falls_back_to_questions_without_pages():
    incoming = {"questions": [{"title": "Only a title"}]}

    questions = map_incoming_questions(incoming)

    assert len(questions) == 1
    assert questions[0].q_id == "q_1"
    assert questions[0].type == "text"
    assert questions[0].text == "Only a title"


def test_malformed_sources_yield_no_questions():
    assert map_incoming_questions({}) == []
    assert map_incoming_questions({"questions": "nope"}) == []
    assert map_incoming_questions({"pages": []}) == []
    assert map_incoming_questions({"pages": [{"elements": None}]}) == []
    assert map_incoming_questions(None) == []


def test_select_elements_requires_non_empty_typed_first_question():
    elements = [{"name": "x"}]
    assert select_elements({"questions": [], "pages": [{"elements": elements}]}) is elements


def test_type_mapping_table():
    expected = {
        "text": "text",
        "comment": "textarea",
        "radiogroup": "radio",
        "checkbox": "checkbox",
        "dropdown": "dropdown",
        "rating": "rating",
        "scale": "scale",
        "date": "date",
        "email": "email",
    }
    for source, target in expected.items():
        assert map_question({"type": source}, 1).type == target


def test_unknown_type_defaults_to_text():
    assert map_question({"type": "matrixdynamic"}, 1).type == "text"
    assert map_question({"type": ["radiogroup"]}, 1).type == "text"
    assert map_question({}, 1).type == "text"


def test_defaults_for_missing_fields():
    question = map_question({"type": "text"}, 3)

    assert question.q_id == "q_3"
    assert question.text == "Question 3"
    assert question.desc is None
    assert question.req is False
    assert question.opts == []


def test_text_falls_back_from_title_to_text():
    assert map_question({"text": "From text"}, 1).text == "From text"
    assert map_question({"title": "", "text": "From text"}, 1).text == "From text"
    assert map_question({"title": "Title", "text": "Text"}, 1).text == "Title"


def test_description_and_required_are_carried_over():
    question = map_question({"description": "Be honest", "isRequired": 1}, 1)

    assert question.desc == "Be honest"
    assert question.req is True


def test_string_choices_get_positional_values():
    question = map_question({"type": "radiogroup", "choices": ["Yes", "No"]}, 1)

    assert [(o.val, o.lbl) for o in question.opts] == [("1", "Yes"), ("2", "No")]


def test_object_choices_use_value_and_text_or_label():
    opts = map_question(
        {
            "choices": [
                {"value": "y", "text": "Yes"},
                {"value": 0, "label": "Zero"},
                {"text": "No value"},
                {},
            ]
        },
        1,
    ).opts

    assert [(o.val, o.lbl) for o in opts] == [("y", "Yes"), ("0", "Zero"), ("3", "No value"), ("4", "")]


def test_non_list_choices_yield_no_options():
    assert map_question({"choices": "Yes,No"}, 1).opts == []
    assert map_question({"choices": {"a": 1}}, 1).opts == []


def test_non_mapping_choice_entries_degrade_to_defaults():
    option = map_option(42, 2)
    assert (option.val, option.lbl) == ("2", "")


def test_non_mapping_elements_degrade_to_defaults():
    questions = map_incoming_questions({"questions": ["loose string", None]})

    assert [(q.q_id, q.text) for q in questions] == [("q_1", "Question 1"), ("q_2", "Question 2")]


def test_scalar_values_are_rendered_like_the_survey_json():
    question = map_question(
        {
            "type": "radiogroup",
            "title": 5,
            "description": 7,
            "choices": [{"value": True, "text": "Yes"}, {"value": 1.0, "text": False}, {"value": 2.5}],
        },
        1,
    )

    assert question.text == "5"
    assert question.desc == "7"
    assert [(o.val, o.lbl) for o in question.opts] == [("true", "Yes"), ("1", "false"), ("2.5", "")]


def test_falsy_or_structured_titles_fall_back():
    assert map_question({"title": 0, "text": "Zero title"}, 1).text == "Zero title"
    assert map_question({"title": {"en": "Localised"}}, 2).text == "Question 2"
    assert map_question({"description": ["not", "text"]}, 1).desc is None
