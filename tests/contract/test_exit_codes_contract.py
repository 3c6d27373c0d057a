from __future__ import annotations

from pathlib import Path

from mindful_mapper.cli import main

"""Exit code contract: 0 success, 1 any failure (config, mapping, input, store)."""


def test_exit_code_success(write_config):
    assert main(["stats"]) == 0


def test_exit_code_config_error(temp_workdir: Path):
    assert main(["--config", "config/none.yml", "stats"]) == 1


def test_exit_code_input_error(write_config):
    assert main(["import", "data/none.xlsx"]) == 1


def test_exit_code_mapping_error(write_config, product_workbook):
    assert main(["import", str(product_workbook), "--map", "a..b=SKU"]) == 1
