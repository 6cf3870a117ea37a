import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout

from tests.server import BINARY_NAME, BINARY_SIZE, LICENSE_NAME, LICENSE_TEXT, UNICODE_NAME, ZipServerTestCase
from zippeek.cli import build_parser, main


def run_cli(*argv):
    output = io.StringIO()
    with redirect_stdout(output):
        code = main(list(argv))
    return code, output.getvalue()


class ParserTest(unittest.TestCase):

    def test_default_command_is_list(self):
        args = build_parser().parse_args(['http://example.com/a.zip'])
        self.assertEqual(args.command, 'list')
        self.assertIsNone(args.filter)

    def test_explicit_list_command(self):
        args = build_parser().parse_args(['http://example.com/a.zip', 'list', '-f', 'txt'])
        self.assertEqual(args.command, 'list')
        self.assertEqual(args.filter, 'txt')

    def test_extract_arguments(self):
        args = build_parser().parse_args(['http://example.com/a.zip', 'extract', 'a.txt', 'b.txt', '-o', 'out'])
        self.assertEqual(args.names, ['a.txt', 'b.txt'])
        self.assertEqual(args.output_dir, 'out')


class CommandLineTest(ZipServerTestCase):

    def test_list(self):
        code, output = run_cli(self.url('three-files.zip'))
        self.assertEqual(code, 0)
        self.assertIn(LICENSE_NAME, output)
        self.assertIn(BINARY_NAME, output)
        self.assertIn("DEFLATE", output)
        self.assertNotIn("three-files/ ", output)

    def test_list_with_filter(self):
        code, output = run_cli(self.url('three-files.zip'), 'list', '--filter', r'\.txt$')
        self.assertEqual(code, 0)
        self.assertIn(LICENSE_NAME, output)
        self.assertNotIn(BINARY_NAME, output)

    def test_list_filter_without_match(self):
        code, output = run_cli(self.url('three-files.zip'), 'list', '-f', 'nothing-like-this')
        self.assertEqual(code, 0)
        self.assertIn("No files match filter", output)

    def test_extract(self):
        with tempfile.TemporaryDirectory() as output_dir:
            code, output = run_cli(self.url('three-files.zip'), 'extract', LICENSE_NAME, BINARY_NAME,
                                   '-o', output_dir)
            self.assertEqual(code, 0)
            with open(os.path.join(output_dir, 'three-files', 'LICENSE.txt'), encoding='utf-8') as f:
                self.assertEqual(f.read(), LICENSE_TEXT)
            self.assertEqual(os.path.getsize(os.path.join(output_dir, 'three-files', 'random.bin')), BINARY_SIZE)
        self.assertIn("Extracted:", output)

    def test_cat(self):
        code, output = run_cli(self.url('unicode.zip'), 'cat', UNICODE_NAME)
        self.assertEqual(code, 0)
        self.assertIn('szczęście', output)

    def test_missing_entry(self):
        code, output = run_cli(self.url('unicode.zip'), 'cat', 'cześć.txt')
        self.assertEqual(code, 1)
        self.assertIn("Cannot find file in archive", output)

    def test_broken_archive(self):
        code, output = run_cli(self.url('three-files-bad-eocd.zip'))
        self.assertEqual(code, 1)
        self.assertIn("Unable to find EOCD record", output)

    def test_rejects_non_http_url(self):
        code, output = run_cli('ftp://example.com/archive.zip')
        self.assertEqual(code, 1)
        self.assertIn("valid HTTP/HTTPS URL", output)


if __name__ == '__main__':
    unittest.main()
