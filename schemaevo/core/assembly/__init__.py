from .assembler import ContainerDefinition, MemberDefinition, assemble, assemble_all

__all__ = ["ContainerDefinition", "MemberDefinition", "assemble", "assemble_all"]
