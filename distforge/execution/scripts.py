"""
Start script generation.

Renders a POSIX shell launcher and a Windows batch launcher from Jinja2
templates. The scripts locate ``APP_HOME`` from their own location (one
level above ``bin/``) and put the ``lib/`` jars on the classpath.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Sequence

from jinja2 import DictLoader, Environment, StrictUndefined

UNIX_TEMPLATE = """#!/usr/bin/env sh
#
# {{ application_name }} start script
#

# Resolve links: $0 may be a link
app_path=$0
while [ -h "$app_path" ]; do
    ls=$(ls -ld "$app_path")
    link=${ls#*' -> '}
    case $link in
      /*) app_path=$link ;;
      *) app_path=$(dirname "$app_path")/$link ;;
    esac
done
APP_HOME=$(cd "$(dirname "$app_path")/.." && pwd -P) || exit

CLASSPATH={% for entry in classpath %}$APP_HOME/lib/{{ entry }}{% if not loop.last %}:{% endif %}{% endfor %}

if [ -n "$JAVA_HOME" ] ; then
    JAVACMD=$JAVA_HOME/bin/java
else
    JAVACMD=java
fi

exec "$JAVACMD" $DEFAULT_JVM_OPTS $JAVA_OPTS ${{ env_opts_name }} -classpath "$CLASSPATH" {{ main_class }} "$@"
"""

WINDOWS_TEMPLATE = """@rem
@rem {{ application_name }} startup script for Windows
@rem
@if "%DEBUG%"=="" @echo off
setlocal

set DIRNAME=%~dp0
if "%DIRNAME%"=="" set DIRNAME=.
set APP_HOME=%DIRNAME%..

set CLASSPATH={% for entry in classpath %}%APP_HOME%\\lib\\{{ entry }}{% if not loop.last %};{% endif %}{% endfor %}

if defined JAVA_HOME (
    set JAVA_EXE=%JAVA_HOME%\\bin\\java.exe
) else (
    set JAVA_EXE=java.exe
)

"%JAVA_EXE%" %DEFAULT_JVM_OPTS% %JAVA_OPTS% %{{ env_opts_name }}% -classpath "%CLASSPATH%" {{ main_class }} %*

endlocal
"""

_env = Environment(
    loader=DictLoader({"unix": UNIX_TEMPLATE, "windows": WINDOWS_TEMPLATE}),
    undefined=StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
)


def env_opts_name(application_name: str) -> str:
    """``my-app`` -> ``MY_APP_OPTS``."""
    cleaned = "".join(c if c.isalnum() else "_" for c in application_name)
    return f"{cleaned.upper()}_OPTS"


def render_start_script(
    platform: str,
    *,
    application_name: str,
    main_class: str,
    classpath: Sequence[str],
) -> str:
    template = _env.get_template(platform)
    text = template.render(
        application_name=application_name,
        main_class=main_class,
        classpath=list(classpath),
        env_opts_name=env_opts_name(application_name),
    )
    if platform == "windows":
        text = text.replace("\n", "\r\n")
    return text


def write_start_scripts(
    output_dir: Path,
    *,
    application_name: str,
    main_class: str,
    classpath: Sequence[Path],
    platforms: Sequence[str],
) -> List[Path]:
    """Render and write one script per platform; returns the written paths."""
    output_dir.mkdir(parents=True, exist_ok=True)
    names = [Path(p).name for p in classpath]
    targets: Dict[str, Path] = {
        "unix": output_dir / application_name,
        "windows": output_dir / f"{application_name}.bat",
    }

    written = []
    for platform in platforms:
        path = targets[platform]
        text = render_start_script(
            platform,
            application_name=application_name,
            main_class=main_class,
            classpath=names,
        )
        path.write_text(text, newline="")
        if platform == "unix":
            os.chmod(path, 0o755)
        written.append(path)
    return written
