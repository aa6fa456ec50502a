"""zapgen code generator."""

from .classify import Classification as Classification
from .classify import EncoderMethod as EncoderMethod
from .classify import UnknownKindError as UnknownKindError
from .classify import ValueTransform as ValueTransform
from .classify import classify as classify
from .emitter import Emitter as Emitter
from .emitter import GeneratedProcedure as GeneratedProcedure
from .emitter import GenerationResult as GenerationResult
from .emitter import generate as generate
from .mapkeys import KeyExpression as KeyExpression
from .mapkeys import stringify_key as stringify_key
from .options import GeneratorOptions as GeneratorOptions
from .parser import ValidationError as ValidationError
from .parser import parse as parse
from .parser import parse_many as parse_many
from .schema import Schema as Schema
from .types import *
