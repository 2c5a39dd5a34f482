from absl import flags


def pytest_configure(config):
    # absltest.main() parses flags; under pytest nothing does, and
    # TestCase.create_tempdir() reads --test_tmpdir.
    flags.FLAGS.mark_as_parsed()
