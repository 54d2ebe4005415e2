"""
domain - Value objects, ports and exceptions.

No dependencies on LangChain, the filesystem, or any other infrastructure.
"""
