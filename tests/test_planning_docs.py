"""Tests for gsdbot.milestone.planning_docs module."""

from gsdbot.milestone import codec
from gsdbot.milestone.models import (
    MilestoneData,
    Phase,
    Requirements,
    build_milestone_data,
    create_initial_state,
)
from gsdbot.milestone.planning_docs import (
    TO_BE_DEFINED,
    PlanningFile,
    create_planning_docs,
    generate_project_markdown,
    generate_roadmap_markdown,
    generate_state_markdown,
)


def make_data(**overrides) -> MilestoneData:
    data = MilestoneData(
        owner="acme",
        repo="widgets",
        milestone_number=7,
        title="Milestone 7: Build auth",
        goal="Build auth",
        scope="OAuth only",
        features=["Login", "Logout"],
        requirements=Requirements(complete=True, answered={"scope": "Build auth", "features": "Login\nLogout"}),
        created_at="2026-01-05T10:00:00+00:00",
        started_at="2026-01-05T10:00:00+00:00",
        run_count=1,
    )
    for key, value in overrides.items():
        setattr(data, key, value)
    return data


class TestPlanningFile:
    """Tests for PlanningFile."""

    def test_name_is_basename(self):
        assert PlanningFile(".github/planning/milestones/7/PROJECT.md", "x").name == "PROJECT.md"


class TestProjectMarkdown:
    """Tests for generate_project_markdown()."""

    def test_sections_present(self):
        text = generate_project_markdown(make_data())
        assert text.startswith("# Milestone 7: Build auth\n")
        assert "**Created:** 2026-01-05T10:00:00+00:00" in text
        assert "## Goal\n\nBuild auth" in text
        assert "## Scope\n\nOAuth only" in text
        assert "- Login\n- Logout" in text

    def test_answers_table_collapses_newlines(self):
        text = generate_project_markdown(make_data())
        assert "| `features` | Login Logout |" in text

    def test_answers_table_escapes_pipes(self):
        data = make_data(requirements=Requirements(answered={"scope": "auth | billing"}))
        text = generate_project_markdown(data)
        assert "| `scope` | auth \\| billing |" in text

    def test_placeholders_for_empty_data(self):
        data = MilestoneData(owner="acme", repo="widgets", milestone_number=3)
        text = generate_project_markdown(data)
        assert text.startswith("# Milestone 3\n")
        assert f"## Goal\n\n{TO_BE_DEFINED}" in text
        assert f"## Scope\n\n{TO_BE_DEFINED}" in text
        assert "- To be defined" in text
        assert "| (none) | |" in text


class TestStateMarkdown:
    """Tests for generate_state_markdown()."""

    def test_matches_codec_output(self):
        data = make_data()
        text = generate_state_markdown(data, updated_at="x")
        assert text == codec.encode(data.to_state(), data.phases, updated_at="x")

    def test_decodes_back_to_state(self):
        data = make_data(phases=[Phase("Foundation Setup")], status="planning")
        decoded = codec.decode(generate_state_markdown(data, updated_at="x"))
        assert decoded.milestone_number == 7
        assert decoded.requirements.complete is True
        assert [p.name for p in decoded.phases] == ["Foundation Setup"]


class TestRoadmapMarkdown:
    """Tests for generate_roadmap_markdown()."""

    def test_no_phases_uses_default_order(self):
        text = generate_roadmap_markdown(make_data())
        assert "**Total Phases:** 0" in text
        assert "Phases will be defined during planning." in text
        assert "1. Phase 1: Foundation Setup" in text
        assert "4. Phase 4: Testing & Verification" in text

    def test_defined_phases(self):
        phases = [
            Phase("Schema", "Design tables", "complete", "None"),
            Phase("API", "", "pending", "Phase 1"),
        ]
        text = generate_roadmap_markdown(make_data(phases=phases))
        assert "**Total Phases:** 2" in text
        assert "### Phase 1: Schema" in text
        assert "- **Goal:** Design tables" in text
        assert "- **Goal:** To be defined" in text
        assert "- **Dependencies:** Phase 1" in text
        assert "2. Phase 2: API" in text


class TestCreatePlanningDocs:
    """Tests for create_planning_docs()."""

    def test_writes_three_documents(self, tmp_path):
        files = create_planning_docs(make_data(), tmp_path)

        base = tmp_path / ".github/planning/milestones/7"
        assert (base / "PROJECT.md").read_text().startswith("# Milestone 7: Build auth")
        assert (base / "STATE.md").read_text().startswith("# Milestone 7 State")
        assert (base / "ROADMAP.md").read_text().startswith("# Milestone 7 Roadmap")
        assert (base / "phases").is_dir()

        assert list(files) == ["project", "state", "roadmap"]
        assert files["state"].path == ".github/planning/milestones/7/STATE.md"
        assert files["project"].purpose == "Milestone context and goals"

    def test_custom_milestones_dir(self, tmp_path):
        files = create_planning_docs(make_data(), tmp_path, "plans/ms")
        assert (tmp_path / "plans/ms/7/ROADMAP.md").exists()
        assert files["roadmap"].path == "plans/ms/7/ROADMAP.md"

    def test_overwrites_existing(self, tmp_path):
        create_planning_docs(make_data(goal="Old goal"), tmp_path)
        create_planning_docs(make_data(goal="New goal"), tmp_path)
        text = (tmp_path / ".github/planning/milestones/7/PROJECT.md").read_text()
        assert "New goal" in text
        assert "Old goal" not in text


class TestBuildMilestoneData:
    """Tests for build_milestone_data()."""

    def test_derives_fields_from_answers(self):
        state = create_initial_state(7, now="t0")
        state.requirements.answered = {
            "scope": "Build authentication system",
            "features": "Login\n\nLogout\n",
            "constraints": "OAuth only",
        }
        data = build_milestone_data("acme", "widgets", state)
        assert data.title == "Milestone 7: Build authentication system"
        assert data.goal == "Build authentication system"
        assert data.scope == "OAuth only"
        assert data.features == ["Login", "Logout"]
        assert data.created_at == "t0"

    def test_title_truncated(self):
        state = create_initial_state(7, now="t0")
        state.requirements.answered = {"scope": "x" * 80}
        assert build_milestone_data("acme", "widgets", state).title == "Milestone 7: " + "x" * 50

    def test_title_without_scope(self):
        state = create_initial_state(7, now="t0")
        assert build_milestone_data("acme", "widgets", state).title == "Milestone 7"