import io
import tarfile

from kubenode.drivers.sshkeys import B2D_MAGIC, generate_ssh_key, make_userdata_tar


def test_generate_ssh_key_writes_pair_and_reuses_it(tmp_path):
    path = tmp_path / "machines" / "demo" / "id_rsa"
    pub = generate_ssh_key(path, bits=1024)

    assert pub.startswith("ssh-rsa ")
    assert path.is_file()
    assert (path.stat().st_mode & 0o777) == 0o600
    assert (tmp_path / "machines" / "demo" / "id_rsa.pub").read_text() == pub + "\n"
    assert generate_ssh_key(path) == pub


def test_userdata_tar_layout():
    data = make_userdata_tar("ssh-rsa AAAA test")
    with tarfile.open(fileobj=io.BytesIO(data)) as tar:
        names = tar.getnames()
        keys = tar.extractfile(".ssh/authorized_keys").read()
    assert names[0] == B2D_MAGIC
    assert ".ssh/authorized_keys2" in names
    assert keys == b"ssh-rsa AAAA test\n"
