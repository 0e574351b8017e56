"""End-to-end conversion of templates to PHP: scalar output and escaping."""

import pytest

from litpress import (
    ComponentMetadata,
    Converter,
    MissingEscapeMetadataError,
    MissingLoopContextError,
    UnresolvedVariableError,
    UnsupportedConstructError,
)
from litpress.environment import terminal


class TestScenarios:
    """The reference conversions."""

    def test_simple_field(self):
        meta = ComponentMetadata.from_dict(
            {"parameters": [{"name": "title", "escape": "html"}]}, name="card"
        )
        result = Converter().convert("<div>${this.title}</div>", meta)
        assert result == "<div><?php echo esc_html( $title ); ?></div>"

    def test_conditional_with_markup(self, env):
        result = env.convert(
            "${this.hasImage ? html`<img>` : html`<div></div>`}", "hero-section"
        )
        assert result == (
            "<?php if ( $hasImage ) : ?><img><?php else : ?><div></div><?php endif; ?>"
        )

    def test_loop(self):
        meta = ComponentMetadata.from_dict(
            {
                "parameters": [{"name": "items", "type": "array", "escape": "html"}],
                "arrayFields": {"items": [{"name": "name", "escape": "html"}]},
            },
            name="list",
        )
        result = Converter().convert(
            "<ul>${this.items.map(item => html`<li>${item.name}</li>`)}</ul>", meta
        )
        assert result == (
            "<ul><?php foreach ( $items as $item ) : ?>"
            "<li><?php echo esc_html( $item['name'] ); ?></li>"
            "<?php endforeach; ?></ul>"
        )

    def test_unresolved_variable(self, env):
        with pytest.raises(UnresolvedVariableError) as exc_info:
            env.convert("<div>${this.unknownField}</div>", "hero-section")
        error = exc_info.value
        assert error.name == "unknownField"
        assert error.component == "hero-section"
        assert error.context == "expression_0"
        assert "title" in error.visible_names
        assert "ctaUrl" in error.visible_names
        assert "Visible: " in str(error)


class TestScalarOutput:
    """this.<name> reads in markup."""

    @pytest.mark.parametrize(
        ("param", "expected"),
        [
            ("title", "<?php echo esc_html( $title ); ?>"),
            ("ctaUrl", "<?php echo esc_url( $ctaUrl ); ?>"),
            ("trackingId", "<?php echo esc_js( $trackingId ); ?>"),
            ("rawHtml", "<?php echo $rawHtml; ?>"),
        ],
    )
    def test_declared_policy(self, env, param, expected):
        assert env.convert(f"<p>${{this.{param}}}</p>", "hero-section") == f"<p>{expected}</p>"

    def test_url_attribute(self, env):
        result = env.convert('<a href="${this.ctaText}">x</a>', "hero-section")
        assert result == '<a href="<?php echo esc_url( $ctaText ); ?>">x</a>'

    def test_unquoted_src_attribute(self, env):
        result = env.convert("<img src=${this.image} alt=${this.title}>", "hero-section")
        assert result == (
            "<img src=<?php echo esc_url( $image ); ?> alt=<?php echo esc_attr( $title ); ?>>"
        )

    def test_other_attribute(self, env):
        result = env.convert('<div class="hero ${this.title}">', "hero-section")
        assert result == '<div class="hero <?php echo esc_attr( $title ); ?>">'

    def test_script_content_uses_declared_policy(self, env):
        source = '<script>if (a<b) x = "${this.trackingId}";</script>'
        assert env.convert(source, "hero-section") == (
            '<script>if (a<b) x = "<?php echo esc_js( $trackingId ); ?>";</script>'
        )

    def test_attribute_after_script(self, env):
        source = '<script>a<b</script><a href="${this.ctaUrl}">'
        assert env.convert(source, "hero-section") == (
            '<script>a<b</script><a href="<?php echo esc_url( $ctaUrl ); ?>">'
        )

    def test_attribute_position_does_not_leak_into_text(self, env):
        result = env.convert('<a href="${this.ctaUrl}">${this.ctaText}</a>', "hero-section")
        assert result == (
            '<a href="<?php echo esc_url( $ctaUrl ); ?>">'
            "<?php echo esc_html( $ctaText ); ?></a>"
        )

    def test_missing_escape_policy(self, env):
        with pytest.raises(MissingEscapeMetadataError) as exc_info:
            env.convert("<p>${this.subtitle}</p>", "hero-section")
        error = exc_info.value
        assert error.field == "subtitle"
        assert error.component == "hero-section"
        assert error.metadata_path == "hero-section.parameters[name=subtitle].escape"

    def test_missing_policy_allowed_in_attribute(self, env):
        result = env.convert('<p title="${this.subtitle}"></p>', "hero-section")
        assert result == '<p title="<?php echo esc_attr( $subtitle ); ?>"></p>'

    def test_array_length(self, env):
        result = env.convert("<span>${this.testimonials.length}</span>", "testimonials")
        assert result == "<span><?php echo count( $testimonials ); ?></span>"

    def test_string_and_number_literals_are_text(self, env):
        assert env.convert("<p>${'Hi'} ${3}</p>", "hero-section") == "<p>Hi 3</p>"

    def test_group_is_transparent_in_markup(self, env):
        result = env.convert("<p>${(this.title)}</p>", "hero-section")
        assert result == "<p><?php echo esc_html( $title ); ?></p>"

    def test_directly_interpolated_template_is_skipped(self, env):
        assert env.convert("<div>${html`<b>x</b>`}</div>", "hero-section") == "<div></div>"

    def test_output_has_no_implicit_whitespace(self, env):
        source = "<div>\n  ${this.title}\n</div>"
        assert env.convert(source, "hero-section") == (
            "<div>\n  <?php echo esc_html( $title ); ?>\n</div>"
        )


class TestUnsupported:
    """Constructs outside the supported set fail with the construct kind."""

    @pytest.mark.parametrize(
        ("source", "construct"),
        [
            ("${this}", "this"),
            ("${[1, 2]}", "array"),
            ("${!this.showCta}", "unary_expression"),
            ("${`x`}", "TemplateLiteral"),
            ("${true}", "literal true"),
            ("${this.title + this.ctaText}", "'+' expression"),
            ("${this.showCta || this.hasImage}", "'||' expression"),
            ("${css`a`}", "css`...`"),
            ("${this.format(this.title)}", "this.format()"),
            ("${this.title.toUpperCase()}", "this.title.toUpperCase()"),
            ("${x => x}", "Arrow"),
            ("${this?.title}", "optional chaining"),
            ("${this.title?.length}", "optional chaining"),
            ("${this.items?.map(i => i)}", "optional chaining"),
        ],
    )
    def test_unsupported(self, env, source, construct):
        with pytest.raises(UnsupportedConstructError) as exc_info:
            env.convert(source, "hero-section")
        assert exc_info.value.construct == construct
        assert exc_info.value.context == "expression_0"

    def test_error_names_the_context(self, env):
        with pytest.raises(UnsupportedConstructError) as exc_info:
            env.convert("<p>${this.title}</p><p>${[1]}</p>", "hero-section")
        assert exc_info.value.context == "expression_1"
        assert "expression_1" in terminal.strip_colors(str(exc_info.value))

    def test_property_on_non_loop_name(self, env):
        source = "${this.testimonials.map(t => html`${title.x}`)}"
        with pytest.raises(UnsupportedConstructError) as exc_info:
            env.convert(source, "testimonials")
        assert exc_info.value.construct == "title.x"


class TestLoopItems:
    """Loop-item reads."""

    def test_fields_use_array_field_policies(self, env):
        source = (
            "${this.testimonials.map(t => html`"
            '<img src="${t.avatar}" alt="${t.name}"><q>${t.quote}</q>`)}'
        )
        assert env.convert(source, "testimonials") == (
            "<?php foreach ( $testimonials as $t ) : ?>"
            "<img src=\"<?php echo esc_url( $t['avatar'] ); ?>\" "
            "alt=\"<?php echo esc_attr( $t['name'] ); ?>\">"
            "<q><?php echo esc_html( $t['quote'] ); ?></q>"
            "<?php endforeach; ?>"
        )

    def test_missing_field_policy_names_array_path(self, env):
        source = "${this.testimonials.map(t => html`<p>${t.role}</p>`)}"
        with pytest.raises(MissingEscapeMetadataError) as exc_info:
            env.convert(source, "testimonials")
        assert exc_info.value.field == "role"
        assert (
            exc_info.value.metadata_path
            == "testimonials.arrayFields.testimonials[name=role].escape"
        )

    def test_item_field_outside_loop(self, env):
        with pytest.raises(MissingLoopContextError) as exc_info:
            env.convert("<p>${item.name}</p>", "testimonials")
        assert exc_info.value.expression == "item.name"

    def test_loop_variable_not_visible_after_loop(self, env):
        source = "${this.testimonials.map(t => html`<i></i>`)}${t}"
        with pytest.raises(UnresolvedVariableError) as exc_info:
            env.convert(source, "testimonials")
        assert exc_info.value.name == "t"
        assert exc_info.value.context == "expression_1"

    def test_whole_item_uses_array_policy(self, env):
        source = "${this.results.map(r => html`<b>${r}</b>`)}"
        assert env.convert(source, "search-results") == (
            "<?php foreach ( $results as $r ) : ?>"
            "<b><?php echo esc_html( $r ); ?></b>"
            "<?php endforeach; ?>"
        )

    def test_item_field_length(self, env):
        source = "${this.results.map(r => html`${r.tags.length}`)}"
        assert env.convert(source, "search-results") == (
            "<?php foreach ( $results as $r ) : ?>"
            "<?php echo count( $r['tags'] ); ?>"
            "<?php endforeach; ?>"
        )


NESTED = ComponentMetadata.from_dict(
    {
        "parameters": [
            {"name": "a", "type": "array", "escape": "html"},
            {"name": "b", "type": "array", "escape": "html"},
        ],
        "arrayFields": {
            "a": [{"name": "f", "escape": "html"}],
            "b": [{"name": "g", "escape": "html"}],
        },
    },
    name="nested",
)


class TestNestedLoops:
    """Loops inside loop bodies."""

    def test_distinct_item_names(self):
        source = "${this.a.map(x => html`${this.b.map(y => html`${y.g}`)}${x.f}`)}"
        assert Converter().convert(source, NESTED) == (
            "<?php foreach ( $a as $x ) : ?>"
            "<?php foreach ( $b as $y ) : ?><?php echo esc_html( $y['g'] ); ?><?php endforeach; ?>"
            "<?php echo esc_html( $x['f'] ); ?>"
            "<?php endforeach; ?>"
        )

    def test_inner_item_shadowing_outer_item(self):
        source = "${this.a.map(x => html`${this.b.map(x => html`${x.g}`)}${x.f}`)}"
        with pytest.raises(UnsupportedConstructError) as exc_info:
            Converter().convert(source, NESTED)
        assert exc_info.value.construct == "this.b.map()"
        assert "shadows" in exc_info.value.detail

    def test_item_shadowing_parameter(self):
        with pytest.raises(UnsupportedConstructError) as exc_info:
            Converter().convert("${this.a.map(b => html`${b.f}`)}", NESTED)
        assert exc_info.value.construct == "this.a.map()"
