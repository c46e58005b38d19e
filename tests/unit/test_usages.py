"""Unit tests for the consumer-side usage scanner."""

import pytest

from contractdrift.core.exceptions import ExtractionError
from contractdrift.core.models import UsageKind, UsageSite
from contractdrift.languages import TypeScriptUsageScanner


@pytest.fixture
def scanner() -> TypeScriptUsageScanner:
    return TypeScriptUsageScanner()


def names(sites: list[UsageSite]) -> list[str]:
    return [site.name for site in sites]


class TestCalls:
    """Tests for call-site detection."""

    def test_call_and_field_access(self, scanner: TypeScriptUsageScanner) -> None:
        source = (
            "import { getUser } from '../shared/api';\n"
            "\n"
            "export async function load(id: string) {\n"
            "  const user = await getUser(id);\n"
            "  return user.userEmail;\n"
            "}\n"
        )
        sites = scanner.scan("client/app.ts", source)
        assert len(sites) == 2

        call, access = sites
        assert call.kind is UsageKind.CALL
        assert call.name == "getUser"
        assert (call.line, call.column) == (4, 22)
        assert call.arguments == "id"
        assert call.receiver is None

        assert access.kind is UsageKind.FIELD_ACCESS
        assert access.name == "userEmail"
        assert access.receiver == "user"
        assert (access.line, access.column) == (5, 15)

    def test_local_bindings_are_not_usages(self, scanner: TypeScriptUsageScanner) -> None:
        source = (
            "function helper(x: number) {\n"
            "  return x;\n"
            "}\n"
            "const local = (a: number) => a;\n"
            "\n"
            "export function run() {\n"
            "  helper(1);\n"
            "  local(2);\n"
            "  remoteCall(3);\n"
            "}\n"
        )
        assert names(scanner.scan("client/run.ts", source)) == ["remoteCall"]

    def test_destructured_bindings(self, scanner: TypeScriptUsageScanner) -> None:
        source = (
            "const { getUser, save: persist } = useApi();\n"
            "getUser(1);\n"
            "persist(2);\n"
        )
        assert names(scanner.scan("client/hooks.ts", source)) == ["useApi"]

    def test_member_call_records_receiver(self, scanner: TypeScriptUsageScanner) -> None:
        source = (
            "import { createClient } from '@acme/sdk';\n"
            "const api = createClient();\n"
            "api.fetchUsr(1);\n"
        )
        sites = scanner.scan("client/api.ts", source)
        assert names(sites) == ["fetchUsr"]
        assert sites[0].receiver == "api"
        assert sites[0].kind is UsageKind.CALL

    def test_method_definitions_are_not_calls(self, scanner: TypeScriptUsageScanner) -> None:
        source = (
            "class Store {\n"
            "  load(id: string) {\n"
            "    return this.fetchItem(id);\n"
            "  }\n"
            "}\n"
        )
        sites = scanner.scan("client/store.ts", source)
        assert names(sites) == ["fetchItem"]
        assert sites[0].receiver == "this"

    def test_multi_line_arguments(self, scanner: TypeScriptUsageScanner) -> None:
        source = "submitOrder(\n  orderId,\n  items,\n);\n"
        (site,) = scanner.scan("client/order.ts", source)
        assert site.name == "submitOrder"
        assert "orderId" in site.arguments
        assert "items" in site.arguments

    def test_multi_line_import_skipped(self, scanner: TypeScriptUsageScanner) -> None:
        source = (
            "import {\n"
            "  getUser,\n"
            "  listOrders,\n"
            "} from '../shared/api';\n"
            "listOrdrs();\n"
        )
        (site,) = scanner.scan("client/orders.ts", source)
        assert site.name == "listOrdrs"
        assert site.line == 5
        assert site.arguments == ""


class TestSuppression:
    """Tests for names the scanner must never report."""

    def test_external_library_names(self, scanner: TypeScriptUsageScanner) -> None:
        source = (
            "import { Chart } from 'chart.js';\n"
            "\n"
            "const chart = new Chart(ctx, config);\n"
            "const key = chart.dataKey;\n"
            "Chart.register(plugin);\n"
        )
        assert scanner.scan("client/chart.ts", source) == []

    def test_strings_and_comments(self, scanner: TypeScriptUsageScanner) -> None:
        source = (
            "// getUser(1)\n"
            'const msg = "user.email getUser(2)";\n'
            "/* fetchData() */\n"
        )
        assert scanner.scan("client/text.ts", source) == []

    def test_runtime_builtins(self, scanner: TypeScriptUsageScanner) -> None:
        source = (
            "console.log(items.length);\n"
            "const total = Math.max(1, 2);\n"
            "const parsed = JSON.parse(text);\n"
        )
        assert scanner.scan("client/util.ts", source) == []

    def test_spread_access_is_a_usage(self, scanner: TypeScriptUsageScanner) -> None:
        source = "const merged = { ...user.profile };\n"
        sites = scanner.scan("client/merge.ts", source)
        assert names(sites) == ["profile"]
        assert sites[0].receiver == "user"

    def test_local_shape_fields(self, scanner: TypeScriptUsageScanner) -> None:
        source = (
            "interface Step {\n"
            "  name: string;\n"
            "  parallelLimit: number;\n"
            "}\n"
            "\n"
            "export function run(step: Step) {\n"
            "  return step.parallelLimit + step.retries;\n"
            "}\n"
        )
        assert names(scanner.scan("client/steps.ts", source)) == ["retries"]

    def test_exported_shape_fields_still_reported(self, scanner: TypeScriptUsageScanner) -> None:
        source = "export interface Card {\n  title: string;\n}\nconst t = card.title;\n"
        assert names(scanner.scan("client/card.ts", source)) == ["title"]

    def test_nested_local_type_fields(self, scanner: TypeScriptUsageScanner) -> None:
        source = (
            "type Props = {\n"
            "  rows: Array<{ label: string; total: number }>;\n"
            "};\n"
            "const first = props.rows[0];\n"
            "const text = row.label;\n"
        )
        assert scanner.scan("client/table.ts", source) == []

    def test_dom_event_members(self, scanner: TypeScriptUsageScanner) -> None:
        source = "const onMove = (info: MouseEvent) => info.pageY + info.offsetTop;\n"
        assert names(scanner.scan("client/move.ts", source)) == ["offsetTop"]

    def test_framework_roots(self, scanner: TypeScriptUsageScanner) -> None:
        source = (
            "export function audit(req: any, res: any) {\n"
            "  const id = req.params.id;\n"
            "  return res.locals.user;\n"
            "}\n"
        )
        assert scanner.scan("server/audit.ts", source) == []

    def test_reactflow_nodes(self, scanner: TypeScriptUsageScanner) -> None:
        source = (
            "import { useNodes } from 'reactflow';\n"
            "\n"
            "const nodes = useNodes();\n"
            "nodes.forEach((node) => console.log(node.data.label, node.id));\n"
        )
        assert scanner.scan("client/flow.tsx", source) == []


class TestTemplateLiterals:
    """Expressions inside template placeholders are scanned."""

    def test_field_access_in_placeholder(self, scanner: TypeScriptUsageScanner) -> None:
        source = "return `Hi ${user.userEmail}`;\n"
        (site,) = scanner.scan("client/greet.ts", source)
        assert site.kind is UsageKind.FIELD_ACCESS
        assert site.name == "userEmail"
        assert site.receiver == "user"
        assert (site.line, site.column) == (1, 19)

    def test_call_in_placeholder(self, scanner: TypeScriptUsageScanner) -> None:
        source = "const label = `Order ${formatOrdr(order)} ready`;\n"
        (site,) = scanner.scan("client/label.ts", source)
        assert site.kind is UsageKind.CALL
        assert site.name == "formatOrdr"
        assert site.arguments == "order"

    def test_template_text_ignored(self, scanner: TypeScriptUsageScanner) -> None:
        source = "const msg = `user.email getUser(2)`;\n"
        assert scanner.scan("client/text.ts", source) == []


class TestErrors:
    """Tests for scanner error handling."""

    def test_binary_content(self, scanner: TypeScriptUsageScanner) -> None:
        with pytest.raises(ExtractionError):
            scanner.scan("client/blob.ts", "\x00\x01")

    def test_empty_file(self, scanner: TypeScriptUsageScanner) -> None:
        assert scanner.scan("client/empty.ts", "") == []
