"""Task to verify the external tools a chain needs are installed."""

import shutil

from buildscan.domain.exceptions import PipelineFatalError
from buildscan.domain.models import Context
from buildscan.services.tasks import register

REQUIRED_TOOLS = {
    "scan": ("docker", "trivy"),
    "estimate": ("docker", "du"),
}


class CheckTools:
    """Fail fast when a required command-line tool is missing."""

    name = "check_tools"

    def get_status_message(self, ctx: Context) -> str:
        return "Check required tools"

    def run(self, ctx: Context) -> Context:
        tools = REQUIRED_TOOLS.get(ctx.chain, ())
        missing = [tool for tool in tools if shutil.which(tool) is None]
        if missing:
            raise PipelineFatalError(
                message=f"Required tool(s) not found: {', '.join(missing)}. Please install them.",
                source=self.name,
            )

        if ctx.log_display and tools:
            ctx.log_display.write(f"[{self.name}] Found: {', '.join(tools)}")
        return ctx


# Auto-register this task
register(CheckTools())
