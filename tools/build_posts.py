#!/usr/bin/env python3
"""Build posts.json / routes.json for the blog. See blogposts/main.py."""

import sys

from blogposts.main import main

if __name__ == "__main__":
    sys.exit(main())
