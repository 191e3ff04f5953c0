"""
ECE Exporter Application Entry Point

Starts the exporter web server. All options can also be given through ECE_*
environment variables or a YAML settings file (see config/settings.yaml).

Usage:
    python main.py --url https://ece.example.com:12443 --username admin --password secret
    python main.py --url https://ece.example.com:12443 --apikey <key> --port 9100
"""

import sys

from ece_exporter.main import main


if __name__ == '__main__':
    sys.exit(main())
