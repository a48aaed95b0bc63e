from pathlib import Path

path_to_testdata = Path(__file__).parent
path_to_config = str(path_to_testdata / "config" / "config.yml")
path_to_loop_config = str(path_to_testdata / "config" / "loop.yml")
path_to_invalid_config = str(path_to_testdata / "config" / "invalid_config.yml")
path_to_unreachable_config = str(path_to_testdata / "config" / "unreachable_config.yml")
