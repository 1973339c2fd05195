"""Tests for FormBuilder field methods, attribute normalization, options and comments."""

from __future__ import annotations

from markupsafe import Markup

from formly.builder import FormBuilder
from formly.config import FormlySettings


# ---------------------------------------------------------------------------
# Construction & options
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_loads_recognized_options_from_config(self, make_builder):
        form = make_builder()
        assert form.get_option("form_class") == "form-horizontal"
        assert form.get_option("display_inline_errors") is True

    def test_camel_case_config_keys_are_normalized(self):
        form = FormBuilder.create(config={"nameAsId": True, "idPrefix": "f-"})
        assert form.get_option("name_as_id") is True
        assert form.get_option("idPrefix") == "f-"

    def test_settings_object_as_config(self):
        form = FormBuilder.create(config=FormlySettings(form_class="form-inline"))
        assert form.get_option("formClass") == "form-inline"
        assert form.get_option("layout") == "form-group"

    def test_provider_answering_camel_case_names(self):
        class CamelConfig:
            values = {"formClass": "form-inline", "nameAsId": False, "displayInlineErrors": True}

            def get(self, key):
                return self.values.get(key)

        form = FormBuilder.create(config=CamelConfig())
        assert form.get_option("form_class") == "form-inline"
        assert form.get_option("name_as_id") is False
        assert form.get_option("display_inline_errors") is True

    def test_unrecognized_config_keys_are_not_loaded(self):
        form = FormBuilder.create(config={"colour": "blue"})
        assert "colour" not in form.options

    def test_missing_option_reads_as_empty_string(self, make_builder):
        assert make_builder().get_option("nothing_here") == ""

    def test_create_wraps_errors_in_a_message_bag(self, make_builder):
        form = make_builder(errors={"email": "Required"})
        assert form.errors.first("email") == "Required"

    def test_no_errors_by_default(self, make_builder):
        assert make_builder().errors is None


class TestSetOption:
    def test_single_key_overwrites_only_that_key(self, make_builder):
        form = make_builder()
        form.set_option("form_class", "form-inline")
        assert form.get_option("form_class") == "form-inline"
        assert form.get_option("autocomplete") == "off"

    def test_mapping_merges_without_removing_keys(self, make_builder):
        form = make_builder()
        form.set_option({"custom": "a"})
        form.set_option({"other": "b"})
        assert form.get_option("custom") == "a"
        assert form.get_option("other") == "b"
        assert form.get_option("comment_class") == "help-block"

    def test_camel_case_key(self, make_builder):
        form = make_builder()
        form.set_option("commentClass", "hint")
        assert form.get_option("comment_class") == "hint"

    def test_returns_builder_for_chaining(self, make_builder):
        form = make_builder()
        assert form.set_option("a", 1).set_comments("b", "c") is form


class TestSetComments:
    def test_single_comment(self, make_builder):
        form = make_builder()
        form.set_comments("email", "We never share it")
        assert form.comments == {"email": "We never share it"}

    def test_mapping_merges(self, make_builder):
        form = make_builder()
        form.set_comments("email", "one")
        form.set_comments({"name": "two"})
        form.set_comments({"email": "three"})
        assert form.comments == {"email": "three", "name": "two"}


# ---------------------------------------------------------------------------
# set_attributes
# ---------------------------------------------------------------------------


class TestSetAttributes:
    def test_adds_form_control_class(self, make_builder):
        assert make_builder().set_attributes("name") == {"class": "form-control"}

    def test_keeps_caller_classes(self, make_builder):
        attrs = make_builder().set_attributes("name", {"class": "input-lg"})
        assert attrs["class"] == "form-control input-lg"

    def test_does_not_duplicate_form_control(self, make_builder):
        attrs = make_builder().set_attributes("name", {"class": "form-control big"})
        assert attrs["class"] == "form-control big"

    def test_python_style_class_key(self, make_builder):
        attrs = make_builder().set_attributes("name", {"class_": "wide"})
        assert attrs == {"class": "form-control wide"}

    def test_list_class_is_coerced(self, make_builder):
        attrs = make_builder().set_attributes("name", {"class": ["a", "b"]})
        assert attrs["class"] == "form-control a b"

    def test_checkbox_gets_no_form_control(self, make_builder):
        assert make_builder().set_attributes("agree", checkbox=True) == {}

    def test_comment_moves_to_comment_map(self, make_builder):
        form = make_builder()
        attrs = form.set_attributes("bio", {"comment": "Keep it short"})
        assert "comment" not in attrs
        assert form.comments["bio"] == "Keep it short"

    def test_id_from_name_when_enabled(self, make_builder):
        form = make_builder(config={"name_as_id": True, "id_prefix": "frm-"})
        assert form.set_attributes("email")["id"] == "frm-email"

    def test_explicit_id_is_kept(self, make_builder):
        form = make_builder(config={"name_as_id": True, "id_prefix": "frm-"})
        assert form.set_attributes("email", {"id": "mine"})["id"] == "mine"

    def test_no_id_when_disabled(self, make_builder):
        assert "id" not in make_builder().set_attributes("email")

    def test_falsy_disabled_is_dropped(self, make_builder):
        assert "disabled" not in make_builder().set_attributes("email", {"disabled": False})

    def test_truthy_disabled_is_kept(self, make_builder):
        assert make_builder().set_attributes("email", {"disabled": True})["disabled"] is True

    def test_does_not_mutate_caller_dict(self, make_builder):
        attrs = {"comment": "hi", "class": "x"}
        make_builder().set_attributes("bio", attrs)
        assert attrs == {"comment": "hi", "class": "x"}

    def test_non_mapping_attributes_are_ignored(self, make_builder):
        assert make_builder().set_attributes("name", "class=wide") == {"class": "form-control"}


# ---------------------------------------------------------------------------
# Field methods
# ---------------------------------------------------------------------------


class TestText:
    def test_value_from_nested_defaults(self, make_builder):
        html = make_builder({"user": {"name": "Bob"}}).text("user[name]", "Name")
        assert '<input type="text" name="user[name]" value="Bob" class="form-control">' in html

    def test_returns_markup(self, make_builder):
        assert isinstance(make_builder().text("name"), Markup)

    def test_name_as_id_example(self, make_builder):
        form = make_builder(config={"name_as_id": True, "id_prefix": "frm-"})
        html = form.text("email", "Email")
        assert 'id="frm-email"' in html
        assert '<div class="form-group" id="form-group-email">' in html
        assert '<label for="frm-email"' in html

    def test_value_is_escaped(self, make_builder):
        html = make_builder().text("name", "Name", '"><script>')
        assert 'value="&#34;&gt;&lt;script&gt;"' in html

    def test_boolean_default_renders_as_posted_value(self, make_builder):
        assert 'name="flag" value="1" class="form-control"' in make_builder({"flag": True}).text("flag")
        assert 'name="flag" value="" class="form-control"' in make_builder({"flag": False}).text("flag")

    def test_comment_attribute_renders_comment_block(self, make_builder):
        form = make_builder()
        html = form.text("bio", "Bio", attributes={"comment": "Short please"})
        assert '<div class="help-block">Short please</div>' in html
        assert "comment=" not in html

    def test_comment_attribute_persists_for_later_fields(self, make_builder):
        form = make_builder()
        form.text("bio", "Bio", attributes={"comment": "Short please"})
        assert "Short please" in form.text("bio", "Bio again")

    def test_rendering_twice_is_identical(self, make_builder):
        form = make_builder({"name": "Bob"}, errors={"name": ["Too short"]})
        form.set_comments("name", "Your full name")
        assert form.text("name", "Name*") == form.text("name", "Name*")


class TestTypedInputs:
    def test_email(self, make_builder):
        html = make_builder({"email": "a@b.c"}).email("email", "Email")
        assert '<input type="email" name="email" value="a@b.c" class="form-control">' in html

    def test_number(self, make_builder):
        html = make_builder().number("qty", "Quantity", 3)
        assert '<input type="number" name="qty" value="3" class="form-control">' in html

    def test_url(self, make_builder):
        html = make_builder().url("site", "Website")
        assert 'type="url"' in html

    def test_date(self, make_builder):
        html = make_builder(old_input={"born": "2000-01-01"}).date("born", "Born")
        assert 'type="date" name="born" value="2000-01-01"' in html


class TestTextarea:
    def test_rows_default_to_four(self, make_builder):
        html = make_builder().textarea("bio", "Bio", "Hello")
        assert '<textarea name="bio" class="form-control" rows="4">Hello</textarea>' in html

    def test_explicit_rows_kept(self, make_builder):
        html = make_builder().textarea("bio", "Bio", attributes={"rows": 8})
        assert 'rows="8"' in html
        assert 'rows="4"' not in html


class TestPassword:
    def test_password_never_repopulates(self, make_builder):
        html = make_builder({"pw": "secret"}, old_input={"pw": "secret"}).password("pw", "Password")
        assert '<input type="password" name="pw" value="" class="form-control">' in html
        assert "secret" not in html


class TestSelect:
    def test_selected_from_defaults(self, make_builder):
        html = make_builder({"color": "g"}).select("color", "Color", {"r": "Red", "g": "Green"})
        assert '<select name="color" class="form-control">' in html
        assert '<option value="r">Red</option>' in html
        assert '<option value="g" selected>Green</option>' in html

    def test_old_input_overrides_selected(self, make_builder):
        form = make_builder(old_input={"color": "r"})
        html = form.select("color", "Color", {"r": "Red", "g": "Green"}, "g")
        assert '<option value="r" selected>Red</option>' in html
        assert '<option value="g">Green</option>' in html


class TestCheckbox:
    def test_checked_from_default(self, make_builder):
        html = make_builder({"agree": True}).checkbox("agree", "Agree")
        assert '<input type="checkbox" name="agree" value="1" checked>' in html

    def test_checked_from_old_input(self, make_builder):
        html = make_builder(old_input={"agree": "1"}).checkbox("agree", "Agree")
        assert "checked" in html

    def test_unchecked_when_old_input_differs(self, make_builder):
        html = make_builder(old_input={"agree": "0"}).checkbox("agree", "Agree", checked=True)
        assert "checked" not in html

    def test_no_form_control_class(self, make_builder):
        assert "form-control" not in make_builder().checkbox("agree", "Agree")


class TestRadio:
    def test_radio_is_not_wrapped(self, make_builder):
        html = make_builder().radio("color", "red")
        assert html == '<input type="radio" name="color" value="red" class="form-control">'

    def test_radio_checked_from_old_input(self, make_builder):
        form = make_builder(old_input={"color": "blue"})
        assert "checked" not in form.radio("color", "red")
        assert "checked" in form.radio("color", "blue")


class TestHiddenAndFile:
    def test_hidden_is_not_wrapped_or_styled(self, make_builder):
        html = make_builder({"token": "abc"}).hidden("token")
        assert html == '<input type="hidden" name="token" value="abc">'

    def test_file(self, make_builder):
        html = make_builder().file("avatar", "Avatar")
        assert '<input type="file" name="avatar" class="form-control">' in html
        assert html.startswith('<div class="form-group">')
