import pytest

from core.contracts.models import FileDiffInfo, TaskContext
from core.prompts.renderer import Jinja2PromptRenderer
from utils.errors import PromptError


@pytest.fixture
def renderer():
    return Jinja2PromptRenderer()


def test_render_pr_review(renderer):
    ctx = TaskContext(
        review_files=["src/a.ts"],
        file_diffs={"src/a.ts": FileDiffInfo(absolute_path="/repo/src/a.ts", diff="+const a = 1;")},
        user_description="feat: add a",
        additional_instructions="Focus on naming.",
        output_file="/repo/review.md",
    )

    prompt = renderer.render("pr_review.j2", ctx)

    assert "feat: add a" in prompt
    assert "- src/a.ts" in prompt
    assert "+const a = 1;" in prompt
    assert "$REVIEW_FILES" in prompt
    assert "Focus on naming." in prompt
    assert "/repo/review.md" in prompt


def test_additional_instructions_section_is_omitted_when_empty(renderer):
    prompt = renderer.render("doc.j2", TaskContext(input_files=["src/a.py"], output_file="/repo/doc.md"))

    assert "- src/a.py" in prompt
    assert "$INPUT_FILES" in prompt
    assert "Additional instructions" not in prompt


@pytest.mark.parametrize(
    "template", ["module_review.j2", "unit_test.j2", "e2e_test.j2", "doc.j2", "refactor.j2"]
)
def test_every_input_template_renders(renderer, template):
    ctx = TaskContext(review_files=["a.py"], input_files=["a.py"], output_file="/repo/out.md")
    assert "/repo/out.md" in renderer.render(template, ctx)


def test_missing_template(renderer):
    with pytest.raises(PromptError):
        renderer.render("missing.j2", TaskContext())


def test_custom_template_dir_overrides_builtin(tmp_path):
    (tmp_path / "doc.j2").write_text("Custom docs for {{ ctx.input_files | join(',') }}", encoding="utf-8")
    renderer = Jinja2PromptRenderer(str(tmp_path))

    assert renderer.render("doc.j2", TaskContext(input_files=["a.py", "b.py"])) == "Custom docs for a.py,b.py"
    assert "unit tests" in renderer.render("unit_test.j2", TaskContext(input_files=["a.py"]))


def test_missing_template_dir(tmp_path):
    with pytest.raises(PromptError):
        Jinja2PromptRenderer(str(tmp_path / "missing"))


def test_undefined_variable_raises(tmp_path):
    (tmp_path / "broken.j2").write_text("{{ ctx.not_a_field }}", encoding="utf-8")
    with pytest.raises(PromptError):
        Jinja2PromptRenderer(str(tmp_path)).render("broken.j2", TaskContext())
