from __future__ import annotations

import asyncio

import pytest
from mcp.server.fastmcp.exceptions import ToolError

from mindful_mapper.server import create_server


def _call(mcp, name, args):
    result = asyncio.run(mcp.call_tool(name, args))
    # newer FastMCP releases return (content, structured_output)
    content = result[0] if isinstance(result, tuple) else result
    return content[0].text


def test_tools_are_registered(ctx):
    tools = asyncio.run(create_server(ctx).list_tools())
    by_name = {t.name: t for t in tools}
    assert set(by_name) == {"import_from_excel", "export_to_excel", "view_stats"}

    schema = by_name["import_from_excel"].inputSchema
    assert schema["required"] == ["file_path"]
    assert schema["properties"]["collection_name"]["default"] == "items"
    assert schema["properties"]["id_prefix"]["default"] == "spb"


def test_import_and_stats_tools(ctx, product_workbook):
    mcp = create_server(ctx)
    text = _call(
        mcp,
        "import_from_excel",
        {"file_path": str(product_workbook), "column_mapping": {"sku": "SKU", "price": "Price Tag"}},
    )
    assert text.startswith("Successfully imported 3 items into collection: items!")

    stats = _call(mcp, "view_stats", {})
    assert "Total Items: 3" in stats
    assert "- Next ID: spb-0004" in stats


def test_export_tool(ctx, memory_store, tmp_path):
    memory_store.insert_many("items", [{"sku": "B01"}])
    out = tmp_path / "out.xlsx"
    text = _call(create_server(ctx), "export_to_excel", {"output_path": str(out)})
    assert text == f"Successfully exported 1 items from collection: items to file: {out}"
    assert out.exists()


def test_failed_command_raises_tool_error(ctx, tmp_path):
    with pytest.raises(ToolError, match="File not found"):
        asyncio.run(create_server(ctx).call_tool("import_from_excel", {"file_path": str(tmp_path / "nope.xlsx")}))
