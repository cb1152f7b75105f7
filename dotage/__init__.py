"""
Dotage shares encrypted configuration files through a git repository.

Files such as '.env' are encrypted with age to every member of a team and
stored in a shared repository, cloned locally as the mirror. Each project has
a directory in the mirror and each file is stored as '<project>/<file>.age'.

The project name is the name of the current directory, unless the first line
of the project's '.age-recipients' file is '# repo=<name>'.

Clone the shared repository and choose the key you decrypt with:

\b
    $ dotage init git@example.invalid:team/secrets.git
    $ dotage privkey ~/.ssh/id_ed25519

Add recipients by public key or by username on the forge:

\b
    $ dotage addkeys alice age1ql3z7hjy54pw3hyww5ayyfg7zqgvc7w3j2elw8zmrj2kg5sfn9aqmcac8p
    $ git add .age-recipients

Commit a file, and fetch everyone else's changes:

\b
    $ dotage commit .env "Rotate the database password"
    $ dotage update
"""

__version__ = '1.0.0'
