# 05.10.26

from typing import Iterable, List, Optional, Sequence


# External libraries
from rich.console import Console
from rich.table import Table


# Logic
from StreamTier.core.models import ParseResult, Representation, SegmentQuality
from StreamTier.core.parser.dash import format_approx_duration
from StreamTier.transport.probe import ProbeResult


# Variable
console = Console()


class TablePrinter:
    """Prints representation tables"""

    def __init__(self, output: Optional[Console] = None):
        self.console = output or console

    def print_representations(self, result: ParseResult, selected: Optional[Representation] = None) -> None:
        """Print the parsed tiers, highest first, marking the selected one"""
        approx = format_approx_duration(result.duration)
        title = f"{(result.manifest_type or 'unknown').upper()} {approx}".strip()

        table = Table(show_header=True, header_style="bold", title=title)
        table.add_column("Sel", width=3, style="green bold")
        table.add_column("ID", style="cyan")
        table.add_column("Resolution", style="yellow")
        table.add_column("Bitrate", style="green")
        table.add_column("Tier", style="magenta")
        table.add_column("Codec", style="white")
        table.add_column("Class", style="blue")
        table.add_column("Path / Variant", style="white", overflow="fold")

        for rep in result.representations:
            checked = 'X' if selected is not None and rep.id == selected.id else ' '
            tier = self._tier_display(rep)
            location = rep.path_id or rep.variant_url or rep.template or rep.base_url or ''

            table.add_row(checked, rep.id, f"{rep.width}x{rep.height}" if rep.width else rep.resolution, f"{rep.bandwidth // 1000} Kbps", tier, rep.codecs or '', rep.classification.value, location)

        self.console.print(table)

    @staticmethod
    def _tier_display(rep: Representation) -> str:
        if rep.hls_tier:
            return f"hls {rep.hls_tier}"
        if rep.dai_id:
            return f"dai {rep.dai_id[:8]}"
        if rep.dash_tier:
            return f"~{rep.dash_tier}" if rep.tier_estimated else rep.dash_tier
        return ''

    def print_quality(self, url: str, quality: Optional[SegmentQuality]) -> None:
        if quality is None:
            self.console.print(f"[yellow]No quality information in[/yellow] {url}")
            return

        estimated = " (estimated)" if quality.is_estimated else ""
        bitrate = f"{quality.bitrate} Kbps" if quality.bitrate else "?"
        max_bitrate = f", max {quality.max_bitrate} Kbps" if quality.max_bitrate else ""
        self.console.print(f"[cyan]{quality.resolution or '?'}[/cyan]{estimated} [green]{bitrate}[/green]{max_bitrate}")

    def print_probe(self, results: Sequence[ProbeResult]) -> None:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Tier", style="magenta")
        table.add_column("Status", style="white")
        table.add_column("Exists", style="green bold")

        for result in results:
            table.add_row(f"{result.tier} Kbps", str(result.status), 'X' if result.exists else '')

        self.console.print(table)
        available: List[str] = [str(r.tier) for r in results if r.exists]
        self.console.print(f"[green]Available tiers:[/green] {', '.join(available) or 'none'}")

    def print_rewrites(self, pairs: Iterable[tuple]) -> None:
        for original, rewritten in pairs:
            if rewritten == original:
                self.console.print(f"[white]{original}[/white] [yellow](unchanged)[/yellow]")
            else:
                self.console.print(f"[white]{original}[/white]\n  [green]-> {rewritten}[/green]")
