import configparser
import appdirs
import os
from pathlib import Path
from typing import Dict, Tuple, List, Optional, TextIO, Union

Value = Union[int, float, bool, str]


def _section_name(section: str, name: List[str]) -> str:
    # "remote.a.b" style names map to the git-like section header [remote "a.b"]
    if name:
        return '{} "{}"'.format(section, '.'.join(name))
    return section


def _parse_name(arg: str) -> Tuple[str, str]:
    if '.' not in arg:
        return 'DEFAULT', arg
    section, *name, option = arg.split('.')
    return _section_name(section, name), option


def _parse_section(arg: str) -> str:
    section, *name = arg.split('.')
    return _section_name(section, name)


def _convert(value: str) -> Value:
    if value.isdecimal():
        return int(value)
    if value.lower() in configparser.ConfigParser.BOOLEAN_STATES:
        return configparser.ConfigParser.BOOLEAN_STATES[value.lower()]
    try:
        return float(value)
    except ValueError:
        return value


class Config:
    """
    Layered configuration for URI parsing.

    Options are read from TINYURI_* environmental variables and then either from a file given to load() or from
    the site and user config files, e.g.

        [parser]
        strict = false

        [query]
        plus-as-space = false
    """
    class Nothing:
        pass

    NOTHING = Nothing()
    CONFIG_FILE_NAME: str = 'tinyuri.cfg'
    ENV_PREFIX: str = 'TINYURI_'
    # parser options and their values when not configured
    DEFAULTS: Dict[str, bool] = {
        'parser.strict': False,
        'query.plus-as-space': False,
    }

    _parser: configparser.ConfigParser
    _site_config_path: Path
    _user_config_path: Path

    def __init__(self, file_name=None) -> None:
        if file_name is None:
            file_name = Config.CONFIG_FILE_NAME
        self._parser = configparser.ConfigParser()
        self._site_config_path = Path(appdirs.site_config_dir('tinyuri')) / file_name
        self._user_config_path = Path(appdirs.user_config_dir('tinyuri')) / file_name

    @property
    def user_config_path(self) -> Path:
        return self._user_config_path

    def _load_environmental_vars(self) -> None:
        # TINYURI_QUERY_PLUS_AS_SPACE=1 sets query.plus-as-space
        for var, value in os.environ.items():
            if not var.startswith(Config.ENV_PREFIX):
                continue
            section, _, option = var[len(Config.ENV_PREFIX):].lower().partition('_')
            name = f'{section}.{option.replace("_", "-")}' if option else section
            self.set_option(name, value)

    def _load_user_config(self) -> None:
        if self._user_config_path.exists() and self._user_config_path.stat().st_mode != 0o100600:
            raise Exception(f'User configuration file {self._user_config_path} has incorrect permissions.')
        self._parser.read(self._user_config_path)

    def load(self, file: TextIO=None) -> None:
        """
        Load the configuration.

        TINYURI_* environmental variables are loaded first. Then the given file is read or, if no file is given,
        the site config file followed by the user config file, which overrides any option set by the site file.

        The files are found in appdirs.site_config_dir('tinyuri') and appdirs.user_config_dir('tinyuri') unless
        relocated by the TINYURI_SITE_CONFIG_PATH and TINYURI_USER_CONFIG_PATH environmental variables.

        :param file: A config file stream to load instead of the site and user files.
        """
        self._load_environmental_vars()

        path = self.get_option('user.config-path', default='')
        if path:
            self._user_config_path = Path(path)
        path = self.get_option('site.config-path', default='')
        if path:
            self._site_config_path = Path(path)

        if file is not None:
            self._parser.read_file(file)
        else:
            self._parser.read(self._site_config_path)
            self._load_user_config()

    def _flag(self, name: str) -> bool:
        return bool(self.get_option(name, default=Config.DEFAULTS[name]))

    @property
    def strict(self) -> bool:
        """Raise MalformedInputError rather than warning about malformed URIs."""
        return self._flag('parser.strict')

    @property
    def plus_as_space(self) -> bool:
        """Decode '+' in query keys and values as a space."""
        return self._flag('query.plus-as-space')

    def save(self) -> None:
        os.makedirs(self._user_config_path.parent, exist_ok=True)
        with open(self._user_config_path, 'w') as file:
            self._parser.write(file)
        self._user_config_path.chmod(0o600)

    def get_section(self, name: str, default: Optional[List[Tuple[str, Value]]]=None) -> List[Tuple[str, Value]]:
        try:
            return [(k, _convert(v)) for (k, v) in self._parser.items(_parse_section(name))]
        except configparser.NoSectionError:
            if default is not None:
                return default
            raise KeyError(f'Section {name} not found in configuration')

    def get_option(self, name: str, default: Optional[Value]=NOTHING) -> Value:
        section, option = _parse_name(name)
        try:
            return _convert(self._parser.get(section, option))
        except (configparser.NoSectionError, configparser.NoOptionError):
            if default is not Config.NOTHING:
                return default
            raise KeyError(f'Option {name} not found in configuration')

    def delete_option(self, name: str) -> None:
        section, option = _parse_name(name)
        try:
            removed = self._parser.remove_option(section, option)
        except configparser.NoSectionError:
            removed = False
        if not removed:
            raise KeyError(f"Option {name} not found in configuration")

    def delete_section(self, name: str) -> None:
        if not self._parser.remove_section(_parse_section(name)):
            raise KeyError(f"Section {name} not found in configuration")

    def set_option(self, name: str, value: Value) -> None:
        section, option = _parse_name(name)
        if not self._parser.has_section(section) and section != 'DEFAULT':
            self._parser.add_section(section)
        self._parser.set(section, option, str(value))

    def list_options(self) -> List[str]:
        """
        List the options set, as "section.option: value" lines.
        """
        options = []
        for section in self._parser.sections():
            sec_name, *name = section.split(" ")
            if name:
                sec_name = sec_name + '.' + name[0][1:-1]
            for option in self._parser.options(section):
                options.append(f'{sec_name}.{option}: {self._parser.get(section, option)}')
        return options
