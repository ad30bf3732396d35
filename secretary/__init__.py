"""
Secretary manages a sops encrypted secrets file using an age key.

The sops and age-keygen binaries are downloaded into the 'bin' directory of the
project the first time they are needed, pinned to a known version. All
encryption and decryption is performed by sops.

The files used are:

\b
    * '.age/key.txt' is the age key used by sops.
    * 'secrets.env' is the dotenv plaintext.
    * 'secrets.env.yaml' is the encrypted secrets file.

Generate a new key (only once, and back it up somewhere safe):

\b
    $ secretary keygen

Decrypt the secrets file, make changes, and encrypt it again:

\b
    $ secretary decrypt
    $ vi secrets.env
    $ secretary encrypt
"""

__version__ = '1.0.0'
