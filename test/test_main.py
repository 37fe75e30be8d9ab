import argparse
import io
import json
import os
import sys
import unittest
import tempfile
from unittest.mock import patch

current_script_path = os.path.abspath(__file__)
project_root = os.path.dirname(os.path.dirname(current_script_path))
sys.path.append(project_root)

from schematize.schematize import main, load_commands

def get_json():
    """Provides the JSON input file path."""
    return os.path.join(os.path.dirname(__file__), 'json', 'orders.json')

def get_xml():
    """Provides the XML input file path."""
    return os.path.join(os.path.dirname(__file__), 'xml', 'catalog.xml')

def command_args(command, **kwargs):
    """Builds the namespace argparse would produce for a command."""
    values = dict(command=command, input=[], out=None, typed_out=None, name=None, schema_type=None,
                  schema_type_from_filename=False, sample_size=0, verbose=False)
    values.update(kwargs)
    return argparse.Namespace(**values)

class TestMain(unittest.TestCase):

    @patch('argparse.ArgumentParser.parse_args', return_value=argparse.Namespace(command=None))
    def test_main_no_command(self, mock_parse_args):
        """Test main function with no command."""
        with patch('builtins.print') as mock_print:
            main()

    @patch('argparse.ArgumentParser.parse_args', return_value=argparse.Namespace(command=None, version=True))
    def test_main_version(self, mock_parse_args):
        """Test the version flag."""
        with patch('builtins.print') as mock_print:
            main()
            mock_print.assert_called_once()
            self.assertTrue(mock_print.call_args[0][0].startswith('Schematize '))

    @patch('argparse.ArgumentParser.parse_args', return_value=command_args(
        'j2schema', input=[get_json()], out=tempfile.gettempdir() + '/schematize/orders.schema.json', name='orders'))
    def test_main_j2schema_command(self, mock_parse_args):
        """Test main function with j2schema command."""
        main()
        output = tempfile.gettempdir() + '/schematize/orders.schema.json'
        assert os.path.exists(output)
        with open(output, 'r', encoding='utf-8') as f:
            schema = json.load(f)
        self.assertEqual(schema['name'], 'orders')
        self.assertEqual(schema['type'], 'Root')

    @patch('argparse.ArgumentParser.parse_args', return_value=command_args(
        'x2schema', input=[get_xml()], out=tempfile.gettempdir() + '/schematize/catalog.schema.json',
        typed_out=tempfile.gettempdir() + '/schematize/catalog-{0}.json', schema_type='books'))
    def test_main_x2schema_command(self, mock_parse_args):
        """Test main function with x2schema command."""
        main()
        assert os.path.exists(tempfile.gettempdir() + '/schematize/catalog.schema.json')
        assert os.path.exists(tempfile.gettempdir() + '/schematize/catalog-books.json')

    @patch('argparse.ArgumentParser.parse_args', return_value=command_args('j2schema', input=[get_json()]))
    def test_main_prints_to_stdout(self, mock_parse_args):
        """Without --out the schema is written to stdout."""
        with patch('sys.stdout', new_callable=io.StringIO) as mock_stdout:
            main()
        schema = json.loads(mock_stdout.getvalue())
        self.assertEqual(schema['contentTypes'], ['Root'])

    @patch('argparse.ArgumentParser.parse_args', return_value=command_args('j2schema'))
    def test_main_reads_stdin(self, mock_parse_args):
        """Without input files the document is read from stdin."""
        with patch('sys.stdin', io.StringIO('{"a": 1}')), \
                patch('sys.stdout', new_callable=io.StringIO) as mock_stdout:
            main()
        schema = json.loads(mock_stdout.getvalue())
        self.assertEqual(schema['children'][0]['children'][0]['name'], 'a')

    @patch('argparse.ArgumentParser.parse_args', return_value=command_args(
        'j2schema', schema_type_from_filename=True, schema_type='piped'))
    def test_main_stdin_ignores_filename_schema_type(self, mock_parse_args):
        """Stdin input falls back to --schema-type instead of a temp file name."""
        with patch('sys.stdin', io.StringIO('{"a": 1}')), \
                patch('sys.stdout', new_callable=io.StringIO) as mock_stdout:
            main()
        schema = json.loads(mock_stdout.getvalue())
        self.assertEqual(schema['schemaTypes'], ['piped'])

    @patch('argparse.ArgumentParser.parse_args', return_value=command_args(
        'x2schema', input=[get_json()], out=tempfile.gettempdir() + '/schematize/broken.json'))
    def test_main_error_exits(self, mock_parse_args):
        """Parse errors are reported and end with exit code 1."""
        with patch('builtins.print') as mock_print:
            with self.assertRaises(SystemExit) as context:
                main()
        self.assertEqual(context.exception.code, 1)
        self.assertEqual(mock_print.call_args[0][0], 'Error: ')

    def test_commands_reference_existing_functions(self):
        """Every command in commands.json points at an importable function."""
        for command in load_commands():
            module_name, func_name = command['function']['name'].rsplit('.', 1)
            module = __import__(module_name, fromlist=[func_name])
            self.assertTrue(callable(getattr(module, func_name)), command['command'])

if __name__ == '__main__':
    unittest.main()
