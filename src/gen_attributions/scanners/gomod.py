"""Scanner for Go module files.

This module parses go.mod files into manifests: the ``module`` directive,
the ``require`` list in declaration order and the ``replace`` table. Other
directives (``go``, ``toolchain``, ``exclude``, ``retract``...) are accepted
and ignored.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from gen_attributions.errors import ManifestParseError
from gen_attributions.models import (
    LocalReplacement,
    Manifest,
    ManifestRoot,
    ModuleVersion,
    RemoteReplacement,
    Replacement,
)
from gen_attributions.scanners.base import BaseScanner

logger = logging.getLogger(__name__)


class GoModScanner(BaseScanner):
    """Scanner for go.mod files.

    Both single-line and parenthesized block forms are supported::

        require golang.org/x/mod v0.14.0
        require (
            github.com/sirupsen/logrus v1.9.3
            golang.org/x/sys v0.15.0 // indirect
        )
        replace example.com/lib => ../lib
    """

    FILENAME = "go.mod"

    # Quoted strings ("..." or `...`) or bare words
    TOKEN_PATTERN = re.compile(r'"(?:[^"\\]|\\.)*"|`[^`]*`|\S+')

    KNOWN_DIRECTIVES = frozenset(
        {
            "module",
            "go",
            "toolchain",
            "godebug",
            "require",
            "replace",
            "exclude",
            "retract",
            "tool",
            "ignore",
        }
    )

    @classmethod
    def can_handle(cls, path: Path) -> bool:
        """Check if this scanner can handle the given file.

        Args:
            path: Path to check.

        Returns:
            True if the file is named "go.mod", False otherwise.
        """
        return path.name == cls.FILENAME

    @property
    def source_name(self) -> str:
        """Return "go.mod"."""
        return self.FILENAME

    def parse(self, data: bytes, root_path: Optional[Path] = None) -> ManifestRoot:
        """Parse go.mod content.

        Args:
            data: Raw go.mod bytes.
            root_path: Directory the go.mod file lives in, if on disk.

        Returns:
            ManifestRoot wrapping the parsed manifest.

        Raises:
            ManifestParseError: On undecodable content, unknown directives,
                malformed require/replace lines, unterminated blocks or a
                missing module directive.
        """
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ManifestParseError(f"go.mod is not valid UTF-8: {e}") from e

        module: Optional[ModuleVersion] = None
        requires: list[ModuleVersion] = []
        replaces: dict[ModuleVersion, Replacement] = {}
        block: Optional[str] = None

        for line_num, raw_line in enumerate(text.splitlines(), start=1):
            tokens = self._tokenize(raw_line, line_num)
            if not tokens:
                continue

            if block is not None:
                if tokens == [")"]:
                    block = None
                    continue
                verb, args = block, tokens
            else:
                verb, args = tokens[0], tokens[1:]
                if verb not in self.KNOWN_DIRECTIVES:
                    raise ManifestParseError(
                        f"line {line_num}: unknown directive: {verb}"
                    )
                if args == ["("]:
                    block = verb
                    continue

            if verb == "module":
                if len(args) != 1:
                    raise ManifestParseError(
                        f"line {line_num}: usage: module module/path"
                    )
                module = ModuleVersion(args[0])
            elif verb == "require":
                requires.append(self._parse_require(args, line_num))
            elif verb == "replace":
                old, new = self._parse_replace(args, line_num)
                replaces[old] = new

        if block is not None:
            raise ManifestParseError(f"unterminated {block} block")

        if module is None:
            raise ManifestParseError("no module directive found")

        logger.debug(
            "Parsed %s: %d requirement(s), %d replacement(s)",
            module,
            len(requires),
            len(replaces),
        )
        return ManifestRoot(
            manifest=Manifest(module=module, requires=requires, replaces=replaces),
            root_path=root_path,
        )

    def _tokenize(self, line: str, line_num: int) -> list[str]:
        """Split a line into tokens, dropping any ``//`` comment."""
        tokens = []
        for token in self.TOKEN_PATTERN.findall(line):
            if token.startswith("//"):
                break
            if token[0] in "\"`":
                if len(token) < 2 or token[-1] != token[0]:
                    raise ManifestParseError(
                        f"line {line_num}: unterminated quoted string: {token}"
                    )
                token = token[1:-1]
            elif "//" in token:
                tokens.append(token.split("//", 1)[0])
                break
            tokens.append(token)
        return [t for t in tokens if t]

    def _parse_require(self, args: list[str], line_num: int) -> ModuleVersion:
        if len(args) != 2:
            raise ManifestParseError(
                f"line {line_num}: usage: require module/path v1.2.3"
            )
        return ModuleVersion(path=args[0], version=args[1])

    def _parse_replace(
        self, args: list[str], line_num: int
    ) -> tuple[ModuleVersion, Replacement]:
        if "=>" not in args:
            raise ManifestParseError(
                f"line {line_num}: usage: replace module/path [v1.2.3] => other/module v1.4\n"
                f"\t or replace module/path [v1.2.3] => ../local/directory"
            )

        arrow = args.index("=>")
        left, right = args[:arrow], args[arrow + 1 :]
        if len(left) not in (1, 2) or len(right) not in (1, 2):
            raise ManifestParseError(f"line {line_num}: malformed replace directive")

        old = ModuleVersion(*left)
        if len(right) == 1:
            if not _is_directory_path(right[0]):
                raise ManifestParseError(
                    f"line {line_num}: replacement module without version must be "
                    f"directory path (rooted or starting with ./ or ../)"
                )
            return old, LocalReplacement(right[0])

        if _is_directory_path(right[0]):
            raise ManifestParseError(
                f"line {line_num}: replacement directory cannot have a version"
            )
        return old, RemoteReplacement(ModuleVersion(*right))


def _is_directory_path(path: str) -> bool:
    return (
        path.startswith(("./", "../", "/", ".\\", "..\\"))
        or path in (".", "..")
        or re.match(r"^[A-Za-z]:[\\/]", path) is not None
    )
