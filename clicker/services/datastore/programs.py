"""Published builds of the client program."""

from typing import List

from sqlalchemy import func

from ... import domain
from . import util
from .exceptions import ProgramNotFound
from .models import DBProgram


def latest_program_files(file_type: str, os: str, arch: str,
                         branch: str) -> List[domain.ProgramFile]:
    """
    Get the files of the newest build matching all four arguments.

    Deleted builds are ignored.

    Raises
    ------
    :class:`ProgramNotFound`

    """
    db_program = util.current_session().query(DBProgram) \
        .filter(DBProgram.file_type == file_type) \
        .filter(DBProgram.os == os) \
        .filter(DBProgram.arch == arch) \
        .filter(DBProgram.branch == branch) \
        .filter(DBProgram.deleted.is_(False)) \
        .order_by(DBProgram.program_id.desc()) \
        .first()
    if db_program is None:
        raise ProgramNotFound(f'No {branch} {file_type} for {os}/{arch}')
    return [domain.from_dict(domain.ProgramFile, obj)
            for obj in db_program.files]


def add_program(program: domain.Program) -> domain.Program:
    """Publish a build. The returned program carries its new id."""
    with util.transaction() as dbsession:
        db_program = DBProgram(
            file_type=program.file_type,
            os=program.os,
            arch=program.arch,
            branch=program.branch,
            files=[domain.to_dict(f) for f in program.files]
        )
        dbsession.add(db_program)
    return program._replace(program_id=db_program.program_id)


def delete_program(program_id: int) -> None:
    """Withdraw a build. It is kept, but never served again."""
    with util.transaction() as dbsession:
        db_program = dbsession.get(DBProgram, program_id)
        if db_program is None:
            raise ProgramNotFound(f'No such program: {program_id}')
        db_program.deleted = True


def count() -> int:
    """Get the number of live builds."""
    return util.current_session() \
        .query(func.count(DBProgram.program_id)) \
        .filter(DBProgram.deleted.is_(False)) \
        .scalar()
