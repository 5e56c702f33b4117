#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Entry point for running news_list as a module.
Allows execution via: python -m news_list
"""

from news_list import run_cli

if __name__ == "__main__":
    run_cli()
