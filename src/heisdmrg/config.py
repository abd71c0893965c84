import json
from collections import namedtuple

from heisdmrg.finite_system import min_environment_size

DMRGParameters = namedtuple("DMRGParameters",
                            ["max_states", "number_of_sites", "half_sweeps", "store_path"],
                            defaults=[None])

_required_keys = ("max_states", "number_of_sites", "half_sweeps")

# Prompts for interactive input, in the order they are asked.
PROMPTS = {
    "max_states": "# states to keep: ",
    "number_of_sites": "System size : ",
    "half_sweeps": "FSA sweeps : ",
}


def validate_parameters(params):
    """
    Check the run parameters before any block is built.
    Raises ValueError describing the first problem found.
    """

    m = params.max_states
    n = params.number_of_sites
    if m < 1:
        raise ValueError(f"number of states to keep must be positive, got {m}")
    if n < 4 or n % 2 != 0:
        raise ValueError(f"system size must be an even number of at least 4 sites, got {n}")
    if params.half_sweeps < 0:
        raise ValueError(f"number of half-sweeps cannot be negative, got {params.half_sweeps}")
    min_env = min_environment_size(m, n)
    if params.half_sweeps > 0 and min_env > n // 2 + 1:
        raise ValueError(
            f"sweeps turn at an environment of {min_env} sites, but the infinite "
            f"system algorithm only builds blocks up to {n // 2 + 1} sites for a "
            f"system of {n} sites; use a longer chain or keep fewer states")
    return params


def load_parameters(path):
    # Read the parameters from a JSON input file.
    with open(path, "r") as f:
        input_dict = json.load(f)
    missing = [key for key in _required_keys if key not in input_dict]
    if missing:
        raise ValueError(f"{path} is missing {', '.join(missing)}")
    try:
        return DMRGParameters(max_states=int(input_dict["max_states"]),
                              number_of_sites=int(input_dict["number_of_sites"]),
                              half_sweeps=int(input_dict["half_sweeps"]),
                              store_path=input_dict.get("store_path"))
    except TypeError as exc:
        raise ValueError(f"{path}: parameters must be integers ({exc})") from exc


def prompt_parameters(values=None, read=None):
    """
    Ask for every parameter not already in `values`.
    values - dictionary of known parameters, e.g. from the command line.
    read - function used to ask, input() by default.
    """

    if read is None:
        read = input
    values = dict(values or {})
    for key in _required_keys:
        if values.get(key) is None:
            values[key] = int(read(PROMPTS[key]))
    return DMRGParameters(max_states=values["max_states"],
                          number_of_sites=values["number_of_sites"],
                          half_sweeps=values["half_sweeps"],
                          store_path=values.get("store_path"))
