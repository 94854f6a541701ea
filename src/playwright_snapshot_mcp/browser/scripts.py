"""Browser-side scripts used by page-level tools."""

# Removes the given tags from an HTML string and re-renders it with one node per line.
FORMAT_HTML_SCRIPT = """
({ htmlContent, tags }) => {
    const doc = new DOMParser().parseFromString(htmlContent, 'text/html');
    for (const tag of tags) {
        const elements = doc.getElementsByTagName(tag);
        for (let i = elements.length - 1; i >= 0; i--)
            elements[i].parentNode && elements[i].parentNode.removeChild(elements[i]);
    }

    let formatted = '';
    function processNode(node, level) {
        const indent = '  '.repeat(level);
        if (node.nodeType === Node.TEXT_NODE) {
            const text = (node.textContent || '').trim();
            if (text)
                formatted += indent + text + '\\n';
        } else if (node.nodeType === Node.ELEMENT_NODE) {
            const tagName = node.nodeName.toLowerCase();
            formatted += indent + '<' + tagName;
            for (const attr of Array.from(node.attributes))
                formatted += ' ' + attr.name + '="' + attr.value + '"';
            if (node.childNodes.length === 0) {
                formatted += ' />\\n';
            } else {
                formatted += '>\\n';
                for (const child of Array.from(node.childNodes))
                    processNode(child, level + 1);
                formatted += indent + '</' + tagName + '>\\n';
            }
        }
    }
    if (doc.documentElement)
        processNode(doc.documentElement, 0);
    return formatted;
}
"""

# Returns the inner or outer HTML of one element.
ELEMENT_HTML_SCRIPT = "(element, includeOuter) => includeOuter ? element.outerHTML : element.innerHTML"

DEFAULT_FILTER_TAGS = ["meta", "script", "style", "link"]
