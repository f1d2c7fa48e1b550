"""
Tests for the SDD tools and registry wiring.
"""

import pytest

from sdd_mcp.config import FeatureFlags, Settings, TemplateSettings
from sdd_mcp.core.template_processor import TemplateProcessor
from sdd_mcp.core.tool_registry import ToolStatus
from sdd_mcp.exceptions import ErrorCategory
from sdd_mcp.observability import MetricsStore
from sdd_mcp.tools import build_router
from sdd_mcp.tools.sdd_create_stub import CreateStubTool, implementation_class_name, kebab_case

PRD = (
    "Users log in through the authentication service. "
    "The API stores records in the database."
)

TOOL_NAMES = [
    "analyze_data_flows",
    "enhanced_seam_analysis",
    "generate_interaction_matrix",
    "sdd_analyze_requirements",
    "sdd_create_stub",
    "sdd_generate_contract",
    "sdd_orchestrate_full_workflow",
    "sdd_validate_compliance",
    "sdd_visualize_architecture",
    "validate_seam_readiness",
]


def make_router(settings=None):
    return build_router(settings or Settings(), metrics=MetricsStore(), default_timeout_ms=10000)


@pytest.fixture
def sdd_router():
    return make_router()


class TestRegistryWiring:

    def test_all_tools_registered_and_active(self, sdd_router):
        registry = sdd_router.registry

        assert sorted(r.name for r in registry.list_records()) == TOOL_NAMES
        assert registry.get_tool_count() == 10
        assert registry.get_active_tool_count() == 10

    def test_tool_versions(self, sdd_router):
        versions = {r.name: r.version for r in sdd_router.registry.list_records()}

        assert versions["sdd_create_stub"] == "1.0.0"
        assert versions["enhanced_seam_analysis"] == "2.0.0"
        assert versions["validate_seam_readiness"] == "2.0.0"

    def test_disabled_feature_is_inactive(self):
        router = make_router(Settings(features=FeatureFlags(generation=False)))
        status = router.registry.get_status("sdd_generate_contract")

        assert status.status is ToolStatus.INACTIVE
        assert status.reason == "Feature 'generation' is disabled"
        assert router.registry.get_status("sdd_analyze_requirements").status is ToolStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_inactive_tool_call_is_unavailable(self):
        router = make_router(Settings(features=FeatureFlags(visualization=False)))

        result = await router.execute(
            "sdd_visualize_architecture",
            {"seams": [{"name": "S", "participants": ["A", "B"]}], "project_name": "Demo"},
        )

        assert result.error.category == ErrorCategory.DEPENDENCY_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_missing_templates_put_generation_tools_in_error(self, tmp_path):
        router = make_router(Settings(templates=TemplateSettings(directory=tmp_path)))
        registry = router.registry

        for name in ("sdd_generate_contract", "sdd_create_stub"):
            status = registry.get_status(name)
            assert status.status is ToolStatus.ERROR
            assert status.reason.startswith("Missing templates:")

        refreshed = await router.refresh()

        assert sorted(refreshed.data["still_failing"]) == [
            "sdd_create_stub@1.0.0",
            "sdd_generate_contract@1.0.0",
        ]

    @pytest.mark.parametrize("name", TOOL_NAMES)
    @pytest.mark.asyncio
    async def test_probe_args_run_cleanly(self, sdd_router, name):
        record = sdd_router.registry.lookup(name)

        result = await sdd_router.probe(record)

        assert result.success is True, result.error


class TestAnalysisTools:

    @pytest.mark.asyncio
    async def test_analyze_requirements(self, sdd_router):
        result = await sdd_router.execute("sdd_analyze_requirements", {"prd_text": PRD, "project_name": "Demo"})

        assert result.success is True
        assert result.data["project_name"] == "Demo"
        assert len(result.data["seam_definitions"]) == len(result.data["seams"])
        assert set(result.data["seam_definitions"][0]) == {
            "name", "participants", "data_flow", "purpose", "contract_name"
        }

    @pytest.mark.asyncio
    async def test_short_prd_rejected(self, sdd_router):
        result = await sdd_router.execute("sdd_analyze_requirements", {"prd_text": "short"})

        assert result.error.category == ErrorCategory.VALIDATION_ERROR
        assert result.error.details["errors"][0]["field"] == "prd_text"

    @pytest.mark.asyncio
    async def test_duplicate_component_names(self, sdd_router):
        result = await sdd_router.execute(
            "generate_interaction_matrix", {"components": [{"name": "A"}, {"name": "A"}]}
        )

        assert result.error.category == ErrorCategory.PROCESSING_ERROR
        assert result.error.details["cause_category"] == "InvalidInput"

    @pytest.mark.asyncio
    async def test_readiness_enum_enforced(self, sdd_router):
        result = await sdd_router.execute(
            "validate_seam_readiness",
            {
                "seam_definitions": [{
                    "name": "S",
                    "description": "A long enough description",
                    "source_component": "A",
                    "target_component": "B",
                }],
                "validation_level": "extreme",
            },
        )

        assert result.error.category == ErrorCategory.VALIDATION_ERROR


class TestGenerationTools:

    @pytest.mark.asyncio
    async def test_generate_contract(self, sdd_router):
        result = await sdd_router.execute(
            "sdd_generate_contract",
            {
                "seam_definition": {
                    "name": "UserAuth Seam",
                    "participants": ["UserAgent", "AuthService"],
                    "data_flow": "BOTH",
                    "purpose": "Authenticate user credentials",
                },
                "project_name": "Demo",
            },
        )

        assert result.success is True
        assert result.data["file_name"] == "userAuth.contract.ts"
        assert result.data["component_name"] == "UserAuthAgent"
        assert result.data["priority"] == "CRITICAL"
        assert "UserAuthContract" in result.data["contract_code"]

    @pytest.mark.asyncio
    async def test_create_stub(self):
        tool = CreateStubTool(TemplateProcessor(Settings()))

        output = await tool.execute({
            "interface_name": "IUserService",
            "methods": [{
                "name": "getUser",
                "params": [{"name": "id", "type": "string"}],
                "return_type": "User",
                "description": "Load a user by id",
            }],
            "data_structures": [{"name": "User", "fields": [{"name": "id", "type": "string"}]}],
            "namespace": "users",
        })

        assert output["file_path_suggestion"] == "src/users/i-user-service.stub.ts"
        assert "export class UserService implements IUserService" in output["stub_code"]
        assert "async getUser(id: string): Promise<ContractResult<User>>" in output["stub_code"]
        assert "// Blueprint: Load a user by id" in output["stub_code"]
        assert output["blueprint_comments_count"] == 1
        assert output["contract_compliance"] == {
            "has_contract_result_pattern": True,
            "has_not_implemented_errors": True,
            "has_blueprint_comments": True,
            "compliance_score": 100,
        }
        assert output["generation_metadata"]["estimated_implementation_effort"] == "medium"

    @pytest.mark.asyncio
    async def test_create_stub_rejects_lowercase_interface(self, sdd_router):
        result = await sdd_router.execute(
            "sdd_create_stub", {"interface_name": "userService", "methods": [{"name": "x"}]}
        )

        assert result.error.category == ErrorCategory.VALIDATION_ERROR

    @pytest.mark.parametrize(
        "interface_name,expected",
        [("IUserService", "UserService"), ("UserService", "UserServiceImpl"), ("I", "IImpl")],
    )
    def test_implementation_class_name(self, interface_name, expected):
        assert implementation_class_name(interface_name) == expected

    def test_kebab_case(self):
        assert kebab_case("PaymentGateway") == "payment-gateway"


class TestComplianceTool:

    @pytest.mark.asyncio
    async def test_scan_project(self, sdd_router, tmp_path):
        (tmp_path / "a.contract.ts").write_text("export interface A { run(): Promise<ContractResult<string>>; }\n")
        (tmp_path / "a.integration.test.ts").write_text("test('a', () => {});\n")

        result = await sdd_router.execute("sdd_validate_compliance", {"project_path": str(tmp_path)})

        assert result.success is True
        assert result.data["compliant"] is True
        assert result.data["files_checked"] == 2
        assert result.data["project_path"] == str(tmp_path)

    @pytest.mark.asyncio
    async def test_missing_project_path(self, sdd_router, tmp_path):
        result = await sdd_router.execute(
            "sdd_validate_compliance", {"project_path": str(tmp_path / "missing")}
        )

        assert result.error.category == ErrorCategory.PROCESSING_ERROR
        assert result.error.details["cause_category"] == "InvalidInput"

    @pytest.mark.asyncio
    async def test_requires_path_or_files(self, sdd_router):
        result = await sdd_router.execute("sdd_validate_compliance", {"strict_mode": True})

        assert result.error.category == ErrorCategory.VALIDATION_ERROR


class TestWorkflowTool:

    @pytest.mark.asyncio
    async def test_full_workflow(self, sdd_router):
        result = await sdd_router.execute(
            "sdd_orchestrate_full_workflow", {"prd_text": PRD, "project_name": "Demo"}
        )

        assert result.success is True
        data = result.data
        assert data["workflow_stages"][0]["stage"] == "analyze_requirements"
        assert all(stage["success"] for stage in data["workflow_stages"])
        assert len(data["project_structure"]["contracts"]) == len(data["seam_definitions"])
        assert data["ready_for_implementation"] is True
        assert data["readiness_score"] == 100.0
        contract_path = data["project_structure"]["contracts"][0]
        assert contract_path.startswith("src/contracts/")
        assert "ContractResult" in data["files"][contract_path]

    @pytest.mark.asyncio
    async def test_sub_calls_share_the_router(self, sdd_router):
        result = await sdd_router.execute(
            "sdd_orchestrate_full_workflow", {"prd_text": PRD, "project_name": "Demo"}
        )

        log = sdd_router.execution_log
        assert len(log.get_by_tool("sdd_analyze_requirements")) == 1
        assert len(log.get_by_tool("sdd_generate_contract")) == len(result.data["seam_definitions"])
        assert len(log.get_by_tool("sdd_orchestrate_full_workflow")) == 1

    @pytest.mark.asyncio
    async def test_workflow_fails_when_analysis_disabled(self):
        router = make_router(Settings(features=FeatureFlags(analysis=False)))

        result = await router.execute(
            "sdd_orchestrate_full_workflow", {"prd_text": PRD, "project_name": "Demo"}
        )

        assert result.success is False
        assert result.error.category == ErrorCategory.PROCESSING_ERROR
        assert result.error.details["stage"] == "analyze_requirements"

    @pytest.mark.asyncio
    async def test_generation_disabled_lowers_readiness(self):
        router = make_router(Settings(features=FeatureFlags(generation=False)))

        result = await router.execute(
            "sdd_orchestrate_full_workflow", {"prd_text": PRD, "project_name": "Demo"}
        )

        assert result.success is True
        assert result.data["readiness_score"] == 0.0
        assert result.data["ready_for_implementation"] is False
        assert result.data["files"] == {}
