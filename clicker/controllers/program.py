"""Download links for the latest client builds."""

from http import HTTPStatus as status

from werkzeug.exceptions import NotFound

from ..services import datastore
from . import ResponseData


def download(file_type: str, os: str, arch: str,
             branch: str) -> ResponseData:
    """
    Get the files of the newest build of ``file_type``.

    Raises
    ------
    :class:`NotFound`
        Raised if no build matches.

    """
    try:
        files = datastore.programs.latest_program_files(file_type, os, arch,
                                                        branch)
    except datastore.ProgramNotFound as e:
        raise NotFound('program not found') from e
    return [{
        'path': f.path,
        'downloadUrl': f.download_url,
        'hash': f.hash
    } for f in files], status.OK, {}
