"""
L1 Domain — pure logic for the bdist service.

No I/O, no subprocess.  Everything here is a function of its arguments.
"""
