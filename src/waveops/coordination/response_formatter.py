"""Markdown rendering of dispatch results for ticket comment replies."""

from typing import List

from .types import CommandDispatchResult


def format_response_comment(result: CommandDispatchResult) -> str:
    """Render a dispatch result as a Markdown comment.

    Errors and Warnings sections are only included when non-empty.
    """
    lines: List[str] = []

    if result.success:
        lines.append("✅ **Command(s) executed successfully**\n")
    else:
        lines.append("❌ **Command execution failed**\n")

    lines.append("**Summary:**")
    lines.append(f"- Total commands: {result.metadata.total_commands}")
    lines.append(f"- Successful: {result.metadata.successful_commands}")
    lines.append(f"- Processing time: {result.metadata.processing_time_ms:.1f}ms\n")

    if result.results:
        lines.append("**Results:**")
        for index, command_result in enumerate(result.results, start=1):
            icon = "✅" if command_result.success else "❌"
            lines.append(f"{index}. {icon} {command_result.message}")
        lines.append("")

    if result.errors:
        lines.append("**Errors:**")
        lines.extend(f"- ⚠️ {error}" for error in result.errors)
        lines.append("")

    if result.warnings:
        lines.append("**Warnings:**")
        lines.extend(f"- ⚠️ {warning}" for warning in result.warnings)
        lines.append("")

    return "\n".join(lines)
