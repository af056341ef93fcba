# -*- coding: utf-8 -*-
"""
Tests for the rdsar command line.

Author
------
Duane Smalley, PhD
duane.d.smalley@gmail.com

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-10-16

Modified
--------
2026-10-19
"""

import pytest
import yaml

from rdsar.cli import main, parse_args

DAY_SEG = '20260104_02'


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / 'sar.yaml'
    path.write_text(yaml.safe_dump({
        'radar': 'sim',
        'day_seg': DAY_SEG,
        'out_path': str(tmp_path / 'unused'),
        'sar': {'sigma_x': 2.5, 'start_eps': 1.0},
        'load': {'recs': [1000, 1400], 'imgs': [[[1, 1]]], 'frm': 1},
        'combine': {'num_chunks': 1},
    }))
    return path


class TestParseArgs:
    """Argument parsing."""

    def test_plan(self):
        args = parse_args(['plan', 'sar.yaml', '--sar-coord', 'c.h5',
                           '--fc', '195e6', '--max-time', '4.6e-6'])
        assert args.command == 'plan'
        assert args.fc == 195e6
        assert not args.verbose

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestCommands:
    """Sub-commands on a simulated segment."""

    def test_simulate_plan_and_combine(self, config_path, tmp_path, capsys):
        out = tmp_path / 'out'
        assert main(['simulate', str(config_path), '--out', str(out),
                     '--combine']) == 0
        frame = out / f'Data_{DAY_SEG}_001.h5'
        assert frame.exists()
        assert str(frame) in capsys.readouterr().out

        assert main(['plan', str(config_path), '--sar-coord',
                     str(out / 'sar_coord.h5'), '--fc', '195e6',
                     '--max-time', '4.6e-6']) == 0
        printed = capsys.readouterr().out
        assert 'Output lines:   200-280 (81)' in printed

    def test_combine_without_chunks(self, config_path):
        # Nothing was written under out_path
        assert main(['combine', str(config_path)]) == 1
