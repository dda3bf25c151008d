"""FFMPEG command builder for filter graphs and thumbnail invocations."""

from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass
class Filter:
    """Represents a single FFMPEG filter."""
    name: str
    args: list[Union[str, int]] = field(default_factory=list)
    params: dict[str, Union[str, int, float]] = field(default_factory=dict)
    inputs: list[str] = field(default_factory=list)
    outputs: list[str] = field(default_factory=list)

    def to_string(self) -> str:
        """Convert filter to FFMPEG filter string."""
        parts = []

        # Input labels
        for inp in self.inputs:
            parts.append(f"[{inp}]")

        # Positional arguments come before key=value parameters
        values = [str(a) for a in self.args]
        values.extend(f"{k}={v}" for k, v in self.params.items())
        if values:
            parts.append(f"{self.name}={':'.join(values)}")
        else:
            parts.append(self.name)

        # Output labels
        for out in self.outputs:
            parts.append(f"[{out}]")

        return "".join(parts)


@dataclass
class FilterChain:
    """A chain of filters connected in sequence."""
    filters: list[Filter] = field(default_factory=list)

    def add(self, filter_obj: Filter) -> "FilterChain":
        """Add a filter to the chain."""
        self.filters.append(filter_obj)
        return self

    def add_filter(
        self,
        name: str,
        args: Optional[list] = None,
        params: Optional[dict] = None,
        inputs: Optional[list[str]] = None,
        outputs: Optional[list[str]] = None,
    ) -> "FilterChain":
        """Add a filter by parameters."""
        self.filters.append(Filter(
            name=name,
            args=args or [],
            params=params or {},
            inputs=inputs or [],
            outputs=outputs or [],
        ))
        return self

    def extend(self, other: "FilterChain") -> "FilterChain":
        """Append all filters of another chain."""
        self.filters.extend(other.filters)
        return self

    @property
    def last(self) -> Filter:
        return self.filters[-1]

    def to_string(self) -> str:
        """Convert filter chain to FFMPEG filter string."""
        if not self.filters:
            return ""
        return ",".join(f.to_string() for f in self.filters)


@dataclass
class FilterGraph:
    """Filter chains joined into a single -filter_complex graph."""
    chains: list[FilterChain] = field(default_factory=list)

    def add(self, chain: FilterChain) -> "FilterGraph":
        """Add a chain as a new graph statement."""
        self.chains.append(chain)
        return self

    def to_string(self) -> str:
        """Convert graph to FFMPEG filtergraph string."""
        return ";".join(c.to_string() for c in self.chains if c.filters)


@dataclass
class OutputMapping:
    """One -map'ed output stream of an FFMPEG invocation."""
    label: str
    dst: str
    options: list[str] = field(default_factory=list)

    def to_args(self) -> list[str]:
        return ["-map", f"[{self.label}]", *self.options, self.dst]


@dataclass
class FFMPEGCommand:
    """Represents a complete FFMPEG command."""
    binary: str = "ffmpeg"
    global_options: list[str] = field(default_factory=list)
    inputs: list[str] = field(default_factory=list)
    complex_filter: Optional[str] = None
    filter_options: list[str] = field(default_factory=list)
    outputs: list[OutputMapping] = field(default_factory=list)
    progress_url: Optional[str] = None

    def to_args(self) -> list[str]:
        """Convert command to list of arguments for subprocess."""
        args = [self.binary]

        args.extend(self.global_options)

        for input_path in self.inputs:
            args.extend(["-i", input_path])

        if self.complex_filter:
            args.extend(["-filter_complex", self.complex_filter])
        args.extend(self.filter_options)

        for output in self.outputs:
            args.extend(output.to_args())

        if self.progress_url:
            args.extend(["-progress", self.progress_url])

        return args


class CommandBuilder:
    """Builder for constructing FFMPEG commands."""

    def __init__(self, binary: str = "ffmpeg"):
        self._command = FFMPEGCommand(binary=binary)

    def global_options(self, *options: str) -> "CommandBuilder":
        """Add global options."""
        self._command.global_options.extend(options)
        return self

    def log_level(self, level: str) -> "CommandBuilder":
        """Set ffmpeg's own log level."""
        return self.global_options("-loglevel", level)

    def headers(self, headers: dict[str, str]) -> "CommandBuilder":
        """Pass HTTP headers for network inputs."""
        if headers:
            self.global_options("-headers", build_headers_str(headers))
        return self

    def input(self, path: str) -> "CommandBuilder":
        """Add an input file or URL."""
        self._command.inputs.append(str(path))
        return self

    def complex_filter(self, filter_graph: str) -> "CommandBuilder":
        """Set complex filtergraph."""
        self._command.complex_filter = filter_graph
        return self

    def no_vsync(self) -> "CommandBuilder":
        """Pass frames through with their timestamps untouched."""
        self._command.filter_options.extend(["-vsync", "0"])
        return self

    def map_output(
        self,
        label: str,
        dst: str,
        quality: int = 0,
    ) -> "CommandBuilder":
        """Map a labelled filter graph output to a destination."""
        options = ["-q:v", str(quality)] if quality > 0 else []
        self._command.outputs.append(OutputMapping(label, dst, options))
        return self

    def progress(self, url: str = "pipe:1") -> "CommandBuilder":
        """Report machine readable progress to the given url."""
        self._command.progress_url = url
        return self

    def build_args(self) -> list[str]:
        """Build and return command as argument list."""
        return self._command.to_args()


def build_headers_str(headers: dict[str, str]) -> str:
    """Render headers the way ffmpeg's -headers option expects them."""
    return "".join(f"{key}: {value}\r\n" for key, value in headers.items())
