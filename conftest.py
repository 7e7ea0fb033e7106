"""Root conftest: pytest inserts the directory of this file into sys.path, so ``stakechain`` imports resolve without installing."""
