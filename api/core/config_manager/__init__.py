# NGINX configuration parsing module

from .parser import NginxConfigParser, nginx_parser, parse_nginx_config

__all__ = ["NginxConfigParser", "nginx_parser", "parse_nginx_config"]
