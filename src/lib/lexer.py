"""
Custom Pygments lexer for MarkdownPlus source

Used when a fenced code block declares the language 'mdplus' or
'markdownplus', so documentation pages can show MarkdownPlus source with
its extensions highlighted.

Token types:
- Keyword.Declaration: div block fences (@@@, %%%) and table fences (|===)
- Name.Attribute / Name.Class / Name.Variable: '{: ...}' descriptor parts
- Keyword: '!meta' commands
- Generic.Deleted / Generic.Inserted / Generic.Emph: inline markers
- Name.Constant: ':icon:' references
- Comment: C-style and HTML comments
"""

from pygments.lexer import RegexLexer, bygroups
from pygments.token import (
    Text,
    Punctuation,
    Name,
    String,
    Keyword,
    Comment,
    Generic,
    Number,
    Operator,
)


class MarkdownPlusLexer(RegexLexer):
    """
    Lexer for MarkdownPlus documents

    Example:
        @@@ .note
        Use ~~old~~ ++new++ values :check:
        @@@

    Tokens:
        @@@ → Keyword.Declaration
        .note → Name.Class
        ~~old~~ → Generic.Deleted
        :check: → Name.Constant
    """

    name = 'MarkdownPlus'
    aliases = ['mdplus', 'markdownplus']
    filenames = ['*.mdp']

    tokens = {
        'root': [
            # Comments
            (r'<!--.*?-->', Comment.Multiline),
            (r'/\*.*?\*/', Comment.Multiline),
            (r'(^|(?<=\s))//[^\n]*', Comment.Single),
            (r'^__END__\n(.|\n)*', Comment.Preproc),

            # Code fences
            (r'^(`{3,}|~{3,})[^\n]*\n', String.Backtick, 'fence'),

            # Block fences and table structure
            (r'^([@%]{3,10})', Keyword.Declaration, 'descriptor'),
            (r'^(\|={3,})', Keyword.Declaration, 'descriptor'),
            (r'^\|-{3,}', Keyword.Declaration),
            (r'(?<!\\)\|', Punctuation),

            # Attribute descriptors
            (r'\{:', Punctuation, 'descriptor'),

            # Includes
            (r'(\()(include)(:)([^)]*)(\))',
             bygroups(Punctuation, Keyword.Namespace, Punctuation, String, Punctuation)),

            # Block prefixes
            (r'^#{1,6}[^\n]*', Generic.Heading),
            (r'^\d+!?\.(?=\s)', Number),
            (r'^:(?=\s)', Punctuation),
            (r'[.\d]{1,6}[\w%]{1,2}>>(?=\s)', Operator),
            (r'>>(?=\s)', Operator),

            # Inline markers
            (r'~~.+?~~', Generic.Deleted),
            (r'\+\+.+?\+\+', Generic.Inserted),
            (r'==.+?==', Generic.Emph),
            (r'\^\^.{1,5}?\^\^', Generic.Strong),
            (r'``(?!`).+?``', String.Backtick),
            (r'`[^`\n]+`', String.Backtick),
            (r':\w+:', Name.Constant),
            (r'(\*\*|__).+?\1', Generic.Strong),

            # Links and images
            (r'(!?\[)([^\]]*)(\]\()([^)]*)(\))',
             bygroups(Punctuation, String, Punctuation, Name.Attribute, Punctuation)),

            (r'<[^>\n]+>', Name.Builtin),
            (r'\\.', String.Escape),
            (r'[^\s@%|{(#:\d.>~+=^`*_!\[<\\/]+', Text),
            (r'\s+', Text),
            (r'.', Text),
        ],

        'fence': [
            (r'^(`{3,}|~{3,})\s*$', String.Backtick, '#pop'),
            (r'[^\n]*\n', String),
        ],

        'descriptor': [
            (r'\}', Punctuation, '#pop'),
            (r'\n', Text, '#pop'),
            (r'<\w+>?', Name.Tag),
            (r'#[\w-]+', Name.Variable),
            (r'\.[\w-]+', Name.Class),
            (r'(![\w-]+)([=:]\S+)?', bygroups(Keyword, String)),
            (r'([\w-]+)(=)(\'[^\']*\'|"[^"]*"|[^\s}]+)',
             bygroups(Name.Attribute, Operator, String)),
            (r'([\w-]+)(:)(\'[^\']*\'|"[^"]*"|[^\s};]+;?)',
             bygroups(Name.Attribute, Punctuation, String)),
            (r'\'[^\']*\'|"[^"]*"', String),
            (r'[^\s}]+', String),
            (r'[ \t]+', Text),
        ],
    }


def get_lexer() -> MarkdownPlusLexer:
    """
    Get the MarkdownPlusLexer instance

    Returns:
        MarkdownPlusLexer instance ready for use with Pygments
    """
    return MarkdownPlusLexer()
