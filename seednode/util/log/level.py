import logging
import os
import re
from functools import cache
from typing import Callable


LEVEL_NAMES = ['TRACE', 'DEBUG', 'INFO', 'WARN', 'ERROR', 'FATAL']


def compile_level_config(config: str) -> Callable[[str], int]:
    """Turns `seednode.eth.*,seednode.screen` into a matcher returning pattern specificity"""
    variants = []
    for ns in config.split(','):
        ns = ns.strip()
        if not ns:
            continue
        pattern = f'^{"(.*)".join(re.escape(p) for p in ns.split("*"))}(\\..*)?$'
        variants.append(_variant(re.compile(pattern)))

    def match_level(ns: str) -> int:
        specificity = 0
        for variant in variants:
            specificity = max(specificity, variant(ns))
        return specificity

    return match_level


def _variant(regex: re.Pattern) -> Callable[[str], int]:
    def match_variant(ns: str) -> int:
        m = regex.match(ns)
        if m is None:
            return 0

        specificity = len(ns) + 1
        for group in m.groups():
            if group is not None:
                specificity -= len(group)
        return specificity

    return match_variant


def _no_match(ns: str) -> int:
    return 0


@cache
def _get_matchers():
    matchers = []
    for level in LEVEL_NAMES:
        if env := os.getenv(f'SEED_{level}'):
            matcher = compile_level_config(env)
        else:
            matcher = _no_match
        matchers.append(matcher)
    return matchers


def reset_level_config() -> None:
    _get_matchers.cache_clear()


def get_log_level(ns: str) -> int:
    level = logging.INFO
    specificity = 0
    matchers = _get_matchers()
    for index, matcher in enumerate(matchers):
        s = matcher(ns)
        if s > specificity:
            level = index * 10
            specificity = s
    return level
