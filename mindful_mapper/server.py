"""
MCP server: exposes the Excel import / export / stats commands to LLM clients.

Tools provided:
  1. import_from_excel – import an .xlsx file into a collection (mapping + IDs)
  2. export_to_excel   – export a collection to an .xlsx file
  3. view_stats        – record count, price analysis and ID tracking

The store handle is created once by the caller and shared by all tools.
A failed command is raised as ToolError so the client receives an error
result carrying the command's message.
"""

from typing import Annotated

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import Field

from .models.results import CommandResult
from .services import commands
from .services.commands import CommandContext

SERVER_NAME = "mindful-mapper"


def _text(result: CommandResult) -> str:
    if not result.ok:
        raise ToolError(result.message)
    return result.message


def create_server(ctx: CommandContext) -> FastMCP:
    """Build a FastMCP server whose tools run against ``ctx``."""
    mcp = FastMCP(SERVER_NAME)
    default_collection = ctx.config.default_collection
    default_prefix = ctx.config.id_prefix

    @mcp.tool()
    def import_from_excel(
        file_path: Annotated[str, Field(
            description="The absolute path to the Excel file (.xlsx).",
        )],
        collection_name: Annotated[str, Field(
            default=default_collection,
            description="The target collection (MongoDB) or table (PostgreSQL) name.",
        )] = default_collection,
        column_mapping: Annotated[dict[str, str] | None, Field(
            default=None,
            description=(
                "Mapping between output fields and Excel headers. "
                "Dotted fields create nested objects. "
                "Example: {'sku': 'SKU', 'name.en': 'Product Name EN'}. "
                "Omit to import rows unchanged."
            ),
        )] = None,
        clear_existing: Annotated[bool, Field(
            default=False,
            description="Delete all records (and reset the ID counter) before importing.",
        )] = False,
        generate_id: Annotated[bool, Field(
            default=True,
            description="Auto-generate sequential IDs (e.g. spb-0001) into the 'id' field.",
        )] = True,
        id_prefix: Annotated[str, Field(
            default=default_prefix,
            description="Prefix for auto-generated IDs.",
        )] = default_prefix,
    ) -> str:
        """Import data from an Excel file into the database with optional mapping and auto-generated IDs."""
        return _text(commands.import_excel(
            ctx,
            file_path,
            collection=collection_name,
            column_mapping=column_mapping,
            clear_existing=clear_existing,
            generate_id=generate_id,
            id_prefix=id_prefix,
        ))

    @mcp.tool()
    def export_to_excel(
        output_path: Annotated[str, Field(
            description="The absolute path where the Excel file should be saved.",
        )],
        collection_name: Annotated[str, Field(
            default=default_collection,
            description="The source collection or table name.",
        )] = default_collection,
    ) -> str:
        """Export a collection to an Excel file (nested fields become dotted columns)."""
        return _text(commands.export_excel(ctx, output_path, collection=collection_name))

    @mcp.tool()
    def view_stats(
        collection_name: Annotated[str, Field(
            default=default_collection,
            description="The collection or table name to analyze.",
        )] = default_collection,
    ) -> str:
        """Get statistics for a collection, including price analysis and ID tracking."""
        return _text(commands.view_stats(ctx, collection=collection_name))

    return mcp


def run_server(ctx: CommandContext) -> None:
    """Serve over stdio until the client disconnects."""
    create_server(ctx).run()
