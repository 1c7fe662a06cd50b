"""Allow ``python -m release_engine``"""

from .cli.main import main

if __name__ == "__main__":
    main()
