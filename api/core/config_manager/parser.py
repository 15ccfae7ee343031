"""
Lightweight NGINX configuration parser.

Extracts the few facts needed to register a virtual host without
full parsing complexity: server names, the first proxy_pass upstream
and a framework guess. Anything else in the file is ignored.
"""

import logging
import re

from models.nginx_file import DEFAULT_FRAMEWORK, STATIC_FRAMEWORK, ParsedConfigFacts

logger = logging.getLogger(__name__)


class NginxConfigParser:
    """Lightweight parser for NGINX virtual-host files."""

    def __init__(self):
        # Regex patterns for the recognized directives
        self.server_name_pattern = re.compile(r"server_name\s+([^;]+);")
        self.proxy_pass_pattern = re.compile(r"proxy_pass\s+http://([0-9.]+):(\d+);")
        self.static_location_pattern = re.compile(r"location\s+/static\s*{")

    def parse(self, content: str) -> ParsedConfigFacts:
        """
        Parse the text of a single NGINX configuration file.

        Never raises: directives that are absent leave their fields empty.

        Args:
            content: Raw file content

        Returns:
            ParsedConfigFacts for this text
        """
        ip_address, port = self._extract_upstream(content)

        return ParsedConfigFacts(
            server_names=self._extract_server_names(content),
            listen_port=port,
            local_ip_address=ip_address,
            framework=self._detect_framework(content),
        )

    def _extract_server_names(self, content: str) -> list[str]:
        """Collect names from every server_name directive, first occurrence wins."""
        names: list[str] = []
        seen = set()

        for match in self.server_name_pattern.finditer(content):
            for name in match.group(1).split():
                if name not in seen:
                    seen.add(name)
                    names.append(name)

        return names

    def _extract_upstream(self, content: str) -> tuple[str | None, int | None]:
        """Extract IP and port from the first proxy_pass directive only."""
        match = self.proxy_pass_pattern.search(content)
        if not match:
            return None, None
        return match.group(1), int(match.group(2))

    def _detect_framework(self, content: str) -> str:
        if self.static_location_pattern.search(content):
            return STATIC_FRAMEWORK
        return DEFAULT_FRAMEWORK


# Global parser instance
nginx_parser = NginxConfigParser()


def parse_nginx_config(content: str) -> ParsedConfigFacts:
    """Parse nginx config text with the shared parser instance."""
    return nginx_parser.parse(content)
