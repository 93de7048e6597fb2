"""
test_cli.py
"""
import json

from PIL import Image

from mandelview.cli import main


def test_render_command(tmp_path):
    output = tmp_path / 'out.png'
    manifest = tmp_path / 'run.json'
    code = main([
        '--log-level', 'WARNING',
        'render', '--width', '16', '--height', '12', '--max-iterations', '30',
        '--center', '-0.5', '0', '--workers', '1', '--orbit', '-1', '0',
        '--output', str(output), '--manifest', str(manifest),
    ])
    assert code == 0
    with Image.open(output) as img:
        assert img.size == (16, 12)

    data = json.loads(manifest.read_text())
    assert data['viewport']['width'] == 16
    assert data['viewport']['center'] == [-0.5, 0.0]
    assert data['output'] == str(output)


def test_inspect_point(capsys):
    assert main(['--log-level', 'ERROR', 'inspect', '--point', '3', '0']) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload['escaped'] is True
    assert payload['iterations'] == 1
    assert payload['orbit'] == [[0.0, 0.0], [3.0, 0.0]]


def test_inspect_pixel(capsys):
    code = main(['--log-level', 'ERROR', 'inspect', '--width', '4', '--height', '4',
                 '--center', '0', '0', '--scale', '1', '--max-iterations', '5', '--pixel', '2', '2'])
    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload['c'] == [0.0, 0.0]
    assert payload['escaped'] is False
    assert len(payload['orbit']) == 6


def test_invalid_requests_exit_with_error(tmp_path):
    assert main(['--log-level', 'ERROR', 'inspect', '--width', '4', '--height', '4', '--pixel', '9', '9']) == 2
    assert main(['--log-level', 'ERROR', 'render', '--width', '0', '--output', str(tmp_path / 'x.png')]) == 2
    assert not (tmp_path / 'x.png').exists()


def test_log_file_receives_render_records(tmp_path):
    log_file = tmp_path / 'render.log'
    code = main([
        '--log-level', 'INFO', '--log-file', str(log_file),
        'render', '--width', '8', '--height', '8', '--max-iterations', '10',
        '--workers', '1', '--output', str(tmp_path / 'out.png'),
    ])
    assert code == 0
    text = log_file.read_text(encoding='utf-8')
    assert 'mandelview.render - Render start size=8x8' in text
    assert 'mandelview.export - Image written' in text
