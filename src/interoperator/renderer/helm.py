"""
Chart renderer backed by ``helm template``.

Loads a packaged chart from a path or URL, resolves its dependencies and
expands it against the merged values. The release is rendered as a fresh
install (revision 1) in the target namespace, with the target cluster's
version as the kube capability.
"""

import logging
import re
import subprocess
import tempfile

import yaml

from ..constants import DEFAULT_RELEASE_REVISION
from ..errors import OperatorError, RenderError
from ..settings import settings
from .base import ChartInput, Renderer, RenderedOutput, RendererInput, filter_files

logger = logging.getLogger(__name__)

SOURCE_MARKER = re.compile(r"^# Source: (?P<path>.+?)\s*$", re.MULTILINE)
DOCUMENT_SEPARATOR = re.compile(r"^---\s*$", re.MULTILINE)


def split_manifests(stream: str, chart_name: str = "chart") -> dict[str, str]:
    """
    Split ``helm template`` output back into its template files.

    Helm prefixes every document with a ``# Source: <chart>/templates/<file>``
    comment. Documents of the same file are joined with ``---``; documents
    without a marker are collected under ``<chart_name>/manifest.yaml``.
    """
    files: dict[str, str] = {}
    for document in DOCUMENT_SEPARATOR.split(stream):
        if not document.strip():
            continue
        match = SOURCE_MARKER.search(document)
        path = match.group("path") if match else f"{chart_name}/manifest.yaml"
        body = document.strip("\n") + "\n"
        if path in files:
            files[path] = f"{files[path]}---\n{body}"
        else:
            files[path] = body
    return files


class HelmRenderer(Renderer):
    """Renders packaged charts through the helm binary."""

    def __init__(
        self,
        cluster_client=None,
        helm_binary: str | None = None,
        timeout: int | None = None,
        ignore_suffixes: list[str] | None = None,
    ):
        """
        Initialize the chart renderer.

        Args:
            cluster_client: Client of the target cluster, used to discover its version
            helm_binary: helm executable (defaults to settings)
            timeout: Render timeout in seconds (defaults to settings)
            ignore_suffixes: Rendered file suffixes to drop (defaults to settings)

        Raises:
            RenderError: If the target cluster version cannot be discovered
        """
        if cluster_client is None:
            from ..utils.kubernetes import ClusterClient

            cluster_client = ClusterClient()

        try:
            self.kube_version = cluster_client.server_version()
        except OperatorError as e:
            raise RenderError("failed to get kubernetes server version", e) from e

        self.helm_binary = helm_binary or settings.helm_binary
        self.timeout = timeout or settings.helm_timeout_seconds
        self.ignore_suffixes = (
            ignore_suffixes
            if ignore_suffixes is not None
            else settings.ignore_file_suffixes
        )

    def _command(self, renderer_input: ChartInput, values_file: str) -> list[str]:
        return [
            self.helm_binary,
            "template",
            renderer_input.name,
            renderer_input.chart_path,
            "--namespace",
            renderer_input.namespace,
            "--kube-version",
            self.kube_version,
            "--values",
            values_file,
            "--dependency-update",
        ]

    def render(self, renderer_input: RendererInput) -> RenderedOutput:
        if not isinstance(renderer_input, ChartInput):
            raise RenderError("invalid input to helm chart renderer")
        if not renderer_input.chart_path:
            raise RenderError(f"no chart location given for {renderer_input.name}")

        chart_path = renderer_input.chart_path
        logger.debug(
            f"Rendering chart {chart_path} as release {renderer_input.name} "
            f"(revision {DEFAULT_RELEASE_REVISION})"
        )

        with tempfile.NamedTemporaryFile("w", suffix=".yaml") as values_file:
            yaml.safe_dump(renderer_input.values, values_file)
            values_file.flush()
            try:
                result = subprocess.run(
                    self._command(renderer_input, values_file.name),
                    capture_output=True,
                    text=True,
                    check=True,
                    timeout=self.timeout,
                )
            except subprocess.CalledProcessError as e:
                raise RenderError(
                    f"can't render chart from path {chart_path}",
                    RuntimeError(e.stderr.strip() or f"exit status {e.returncode}"),
                ) from e
            except subprocess.TimeoutExpired as e:
                raise RenderError(f"timed out rendering chart {chart_path}", e) from e
            except OSError as e:
                raise RenderError(f"can't run {self.helm_binary}", e) from e

        chart_name = chart_path.rstrip("/").rsplit("/", 1)[-1]
        files = split_manifests(result.stdout, chart_name)
        return RenderedOutput(chart_name, filter_files(files, self.ignore_suffixes))
