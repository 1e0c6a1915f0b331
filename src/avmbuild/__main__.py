"""Allow running avmbuild as `python -m avmbuild`."""

from avmbuild.cli import main

if __name__ == "__main__":
    main()
