"""
Unit tests for the lightweight NGINX config parser.
"""

from core.config_manager import NginxConfigParser, nginx_parser, parse_nginx_config
from models.nginx_file import DEFAULT_FRAMEWORK, STATIC_FRAMEWORK


class TestServerNames:
    """Tests for server_name extraction."""

    def test_single_directive(self):
        facts = parse_nginx_config("server { server_name example.com www.example.com; }")
        assert facts.server_names == ["example.com", "www.example.com"]

    def test_multiple_directives_deduplicated_in_first_occurrence_order(self):
        text = """
        server { server_name a b a; }
        server { server_name c b; }
        """
        assert parse_nginx_config(text).server_names == ["a", "b", "c"]

    def test_directive_spanning_lines(self):
        text = "server_name one.example.com\n    two.example.com\n\tthree.example.com;"
        assert parse_nginx_config(text).server_names == [
            "one.example.com",
            "two.example.com",
            "three.example.com",
        ]

    def test_no_server_name(self):
        facts = parse_nginx_config("server { listen 80; }")
        assert facts.server_names == []

    def test_empty_text(self):
        facts = parse_nginx_config("")
        assert facts.server_names == []
        assert facts.listen_port is None
        assert facts.local_ip_address is None
        assert facts.framework == DEFAULT_FRAMEWORK


class TestProxyPass:
    """Tests for upstream extraction."""

    def test_ip_and_port(self, sample_proxy_config):
        facts = parse_nginx_config(sample_proxy_config)
        assert facts.local_ip_address == "192.168.100.17"
        assert facts.listen_port == 8001

    def test_only_first_proxy_pass_is_used(self):
        text = """
        location /api { proxy_pass http://10.0.0.2:3000; }
        location / { proxy_pass http://10.0.0.3:4000; }
        """
        facts = parse_nginx_config(text)
        assert facts.local_ip_address == "10.0.0.2"
        assert facts.listen_port == 3000

    def test_hostname_upstream_not_recognized(self):
        facts = parse_nginx_config("proxy_pass http://localhost:3000;")
        assert facts.local_ip_address is None
        assert facts.listen_port is None

    def test_upstream_without_port_not_recognized(self):
        facts = parse_nginx_config("proxy_pass http://10.0.0.2;")
        assert facts.local_ip_address is None
        assert facts.listen_port is None

    def test_https_upstream_not_recognized(self):
        facts = parse_nginx_config("proxy_pass https://10.0.0.2:443;")
        assert facts.local_ip_address is None

    def test_listen_directive_does_not_set_port(self):
        facts = parse_nginx_config("server { listen 8080; server_name x.com; }")
        assert facts.listen_port is None


class TestFramework:
    """Tests for the framework heuristic."""

    def test_static_location_means_static_framework(self, sample_proxy_config):
        assert parse_nginx_config(sample_proxy_config).framework == STATIC_FRAMEWORK

    def test_static_location_without_space_before_brace(self):
        assert parse_nginx_config("location /static{ }").framework == STATIC_FRAMEWORK

    def test_default_framework(self):
        facts = parse_nginx_config("server_name x.com; proxy_pass http://10.0.0.9:4000;")
        assert facts.framework == DEFAULT_FRAMEWORK

    def test_other_static_paths_ignored(self):
        assert parse_nginx_config("location /staticfiles/ { }").framework == DEFAULT_FRAMEWORK


class TestParserPurity:
    """The parser is a pure function of its input."""

    def test_same_input_same_output(self, sample_proxy_config):
        assert parse_nginx_config(sample_proxy_config) == parse_nginx_config(sample_proxy_config)

    def test_fresh_instance_matches_global(self, sample_proxy_config):
        assert NginxConfigParser().parse(sample_proxy_config) == nginx_parser.parse(sample_proxy_config)

    def test_results_do_not_share_state(self):
        first = parse_nginx_config("server_name a.com;")
        first.server_names.append("mutated.com")
        assert parse_nginx_config("server_name a.com;").server_names == ["a.com"]
